import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from infrastructure.config import ContainerConfig, build_default_container, build_ranker
from infrastructure.ranking.disabled_ranker import DisabledRanker
from infrastructure.ranking.llm_ranker import PLACEHOLDER_API_KEY, LLMRelevanceRanker, RankerSettings
from infrastructure.repositories.in_memory_image_repository import InMemoryImageRepository
from infrastructure.repositories.sqlite_image_repository import SqliteImageRepository


class TestRankerSelection(unittest.TestCase):
    def test_unconfigured_ranker_is_disabled(self):
        self.assertIsInstance(build_ranker(RankerSettings()), DisabledRanker)

    def test_placeholder_key_is_disabled(self):
        settings = RankerSettings(endpoint="https://llm.example", api_key=PLACEHOLDER_API_KEY, model="m")
        self.assertIsInstance(build_ranker(settings), DisabledRanker)

    def test_explicitly_disabled(self):
        settings = RankerSettings(endpoint="https://llm.example", api_key="k", model="m", enabled=False)
        self.assertIsInstance(build_ranker(settings), DisabledRanker)

    def test_configured_ranker(self):
        settings = RankerSettings(endpoint="https://llm.example", api_key="k", model="m")
        ranker = build_ranker(settings)
        self.assertIsInstance(ranker, LLMRelevanceRanker)
        self.assertTrue(ranker.enabled)


class TestContainer(unittest.TestCase):
    def test_memory_container(self):
        container = build_default_container(ContainerConfig(repository="memory", candidate_limit=50, min_score=0.2))

        self.assertIsInstance(container.repository, InMemoryImageRepository)
        self.assertEqual(container.candidate_limit, 50)
        self.assertFalse(container.ranker.enabled)

    def test_sqlite_container_creates_database(self):
        with tempfile.TemporaryDirectory() as tmp:
            db_path = Path(tmp) / "data" / "images.db"

            container = build_default_container(ContainerConfig(repository="sqlite", db_path=str(db_path)))

            self.assertIsInstance(container.repository, SqliteImageRepository)
            self.assertTrue(db_path.exists())

    def test_unknown_repository(self):
        with self.assertRaises(ValueError):
            build_default_container(ContainerConfig(repository="postgres"))  # type: ignore[arg-type]


class TestConfigFromEnv(unittest.TestCase):
    def test_reads_environment(self):
        env = {
            "IMAGESEARCH_REPOSITORY": "memory",
            "IMAGESEARCH_DB_PATH": "/tmp/images.db",
            "IMAGESEARCH_CANDIDATE_LIMIT": "250",
            "IMAGESEARCH_MIN_SCORE": "0.25",
            "IMAGESEARCH_RANKER_ENABLED": "no",
            "IMAGESEARCH_RANKER_ENDPOINT": "https://llm.example",
            "IMAGESEARCH_RANKER_API_KEY": "k",
            "IMAGESEARCH_RANKER_MODEL": "m",
            "IMAGESEARCH_RANKER_TIMEOUT": "5",
            "IMAGESEARCH_RANKER_TEMPERATURE": "0.5",
            "IMAGESEARCH_RANKER_MAX_TOKENS": "128",
        }
        with mock.patch.dict(os.environ, env):
            cfg = ContainerConfig.from_env()

        self.assertEqual(cfg.repository, "memory")
        self.assertEqual(cfg.db_path, "/tmp/images.db")
        self.assertEqual(cfg.candidate_limit, 250)
        self.assertEqual(cfg.min_score, 0.25)
        self.assertFalse(cfg.ranker.enabled)
        self.assertEqual(cfg.ranker.timeout, 5.0)
        self.assertEqual(cfg.ranker.temperature, 0.5)
        self.assertEqual(cfg.ranker.max_tokens, 128)

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            cfg = ContainerConfig.from_env()

        self.assertEqual(cfg.repository, "sqlite")
        self.assertEqual(cfg.candidate_limit, 1000)
        self.assertTrue(cfg.ranker.enabled)
        self.assertFalse(cfg.ranker.is_configured)
        self.assertEqual(cfg.ranker.max_candidates, 40)


if __name__ == "__main__":
    unittest.main()
