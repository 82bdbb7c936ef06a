"""Dependency wiring for the image search application."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Literal

from application.services.heuristic_scorer import HeuristicScorer
from application.services.query_analyzer import QueryAnalyzer
from application.services.result_assembler import DEFAULT_MIN_SCORE, ResultAssembler
from application.services.tag_normalizer import TagNormalizer
from domain.interfaces import ImageRepository, RelevanceRanker
from infrastructure.ranking.disabled_ranker import DisabledRanker
from infrastructure.ranking.llm_ranker import LLMRelevanceRanker, RankerSettings
from infrastructure.repositories.in_memory_image_repository import InMemoryImageRepository
from infrastructure.repositories.sqlite_image_repository import SqliteImageRepository

logger = logging.getLogger(__name__)

RepositoryName = Literal["sqlite", "memory"]

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(slots=True)
class Container:
    """Simple container bundling concrete infrastructure implementations."""

    repository: ImageRepository
    tag_normalizer: TagNormalizer
    analyzer: QueryAnalyzer
    scorer: HeuristicScorer
    ranker: RelevanceRanker
    assembler: ResultAssembler
    candidate_limit: int = 1000


@dataclass(slots=True)
class ContainerConfig:
    """Configuration for selecting the repository and the external ranker."""

    repository: RepositoryName = "sqlite"
    db_path: str = "data/imagesearch.db"
    candidate_limit: int = 1000
    min_score: float = DEFAULT_MIN_SCORE
    ranker: RankerSettings = field(default_factory=RankerSettings)

    @classmethod
    def from_env(cls) -> ContainerConfig:
        ranker = RankerSettings(
            endpoint=os.getenv("IMAGESEARCH_RANKER_ENDPOINT", ""),
            api_key=os.getenv("IMAGESEARCH_RANKER_API_KEY", ""),
            model=os.getenv("IMAGESEARCH_RANKER_MODEL", ""),
            enabled=os.getenv("IMAGESEARCH_RANKER_ENABLED", "true").strip().lower() in _TRUE_VALUES,
            timeout=float(os.getenv("IMAGESEARCH_RANKER_TIMEOUT", "30")),
            temperature=float(os.getenv("IMAGESEARCH_RANKER_TEMPERATURE", "0.2")),
            max_tokens=int(os.getenv("IMAGESEARCH_RANKER_MAX_TOKENS", "2048")),
        )
        return cls(
            repository=os.getenv("IMAGESEARCH_REPOSITORY", "sqlite"),  # type: ignore[arg-type]
            db_path=os.getenv("IMAGESEARCH_DB_PATH", "data/imagesearch.db"),
            candidate_limit=int(os.getenv("IMAGESEARCH_CANDIDATE_LIMIT", "1000")),
            min_score=float(os.getenv("IMAGESEARCH_MIN_SCORE", str(DEFAULT_MIN_SCORE))),
            ranker=ranker,
        )


_REPOSITORY_FACTORIES: dict[RepositoryName, Callable[[ContainerConfig], ImageRepository]] = {
    "sqlite": lambda cfg: SqliteImageRepository(db_path=Path(cfg.db_path)),
    "memory": lambda cfg: InMemoryImageRepository(),
}


def build_ranker(settings: RankerSettings, tag_normalizer: TagNormalizer | None = None) -> RelevanceRanker:
    """Return the LLM ranker when it is usable, otherwise a disabled stand-in."""
    if not settings.enabled:
        return DisabledRanker("ranker disabled by configuration")
    if not settings.is_configured:
        logger.info("Relevance ranker endpoint, key or model missing; heuristic scoring only.")
        return DisabledRanker("ranker not configured")
    return LLMRelevanceRanker(settings, tag_normalizer=tag_normalizer)


def build_default_container(config: ContainerConfig | None = None) -> Container:
    """Instantiate the default infrastructure stack."""

    cfg = config or ContainerConfig.from_env()
    try:
        repository = _REPOSITORY_FACTORIES[cfg.repository](cfg)
    except KeyError as exc:
        raise ValueError(f"Unknown repository '{cfg.repository}'") from exc
    tag_normalizer = TagNormalizer()

    return Container(
        repository=repository,
        tag_normalizer=tag_normalizer,
        analyzer=QueryAnalyzer(),
        scorer=HeuristicScorer(tag_normalizer=tag_normalizer),
        ranker=build_ranker(cfg.ranker, tag_normalizer=tag_normalizer),
        assembler=ResultAssembler(default_min_score=cfg.min_score),
        candidate_limit=cfg.candidate_limit,
    )


__all__ = ["Container", "ContainerConfig", "build_default_container", "build_ranker"]
