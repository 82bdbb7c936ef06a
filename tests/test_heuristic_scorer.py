import math
import unittest
from datetime import datetime, timedelta, timezone

from application.services.heuristic_scorer import (
    DEFAULT_WEIGHTS,
    ComponentWeights,
    HeuristicScorer,
    text_similarity,
    weights_for,
)
from application.services.query_analyzer import QueryAnalyzer
from domain.entities import ImageRecord, QueryComplexity, QueryType

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0)


def sunset_image(**overrides) -> ImageRecord:
    values = dict(
        id=1,
        file_name="sunset.jpg",
        original_name="sunset.jpg",
        description="Beautiful sunset over the beach",
        tags="sunset, beach, orange",
        created_at=FIXED_NOW,
    )
    values.update(overrides)
    return ImageRecord(**values)


class TestWeights(unittest.TestCase):
    def test_weights_per_query_type(self):
        self.assertEqual(weights_for(QueryType.SEMANTIC, QueryComplexity.SIMPLE), ComponentWeights(0.45, 0.35, 0.15, 0.05))
        self.assertEqual(weights_for(QueryType.TECHNICAL, QueryComplexity.MEDIUM), ComponentWeights(0.20, 0.20, 0.20, 0.40))
        self.assertEqual(weights_for(None, QueryComplexity.SIMPLE), DEFAULT_WEIGHTS)

    def test_complex_queries_lean_on_text(self):
        weights = weights_for(QueryType.SEMANTIC, QueryComplexity.COMPLEX)

        self.assertAlmostEqual(weights.description, 0.495)
        self.assertAlmostEqual(weights.tag, 0.385)
        self.assertAlmostEqual(weights.filename, 0.135)
        self.assertAlmostEqual(weights.metadata, 0.045)

    def test_complex_caps(self):
        weights = weights_for(QueryType.COLOR, QueryComplexity.COMPLEX)
        self.assertAlmostEqual(weights.description, 0.385)
        self.assertAlmostEqual(weights.tag, 0.385)
        weights = weights_for(QueryType.SEMANTIC, QueryComplexity.COMPLEX)
        self.assertLessEqual(weights.description, 0.5)
        self.assertLessEqual(weights.tag, 0.4)


class TestTextSimilarity(unittest.TestCase):
    def test_similarity_levels(self):
        self.assertEqual(text_similarity("abc", "abc"), 1.0)
        self.assertEqual(text_similarity("abc", "abcd"), 0.8)
        self.assertEqual(text_similarity("ab", "cd"), 0.0)
        self.assertAlmostEqual(text_similarity("abc", "bcx"), 0.5)


class TestHeuristicScorer(unittest.TestCase):
    def setUp(self) -> None:
        self.scorer = HeuristicScorer(now=lambda: FIXED_NOW)
        self.analyzer = QueryAnalyzer()

    def test_sunset_beach_breakdown(self):
        result = self.scorer.score(sunset_image(), self.analyzer.analyze("sunset beach"))

        self.assertAlmostEqual(result.description_score, 0.6)
        self.assertAlmostEqual(result.tag_score, 2 / 3)
        self.assertAlmostEqual(result.filename_score, 0.3)
        self.assertEqual(result.metadata_score, 0.0)
        self.assertAlmostEqual(result.bonus_score, 0.09)
        self.assertEqual(result.penalty_score, 0.0)
        self.assertAlmostEqual(result.total_score, 0.27 + (2 / 3) * 0.35 + 0.045 + 0.09)
        self.assertEqual(result.explanation, "Strong description match, Relevant tags, Quality/freshness bonus")
        self.assertEqual(result.confidence_level, "MEDIUM")

    def test_components_stay_in_unit_range(self):
        images = [
            sunset_image(),
            sunset_image(id=2, description="sunset sunset sunset beach beach", tags="sunset"),
            ImageRecord(id=3, file_name="x.png", file_format="PNG", orientation="LANDSCAPE"),
            ImageRecord(id=4),
        ]
        for query in ("sunset beach", '"sunset over" beach png landscape', "bright"):
            criteria = self.analyzer.analyze(query)
            for image in images:
                result = self.scorer.score(image, criteria)
                for value in (
                    result.description_score,
                    result.tag_score,
                    result.filename_score,
                    result.metadata_score,
                ):
                    self.assertGreaterEqual(value, 0.0)
                    self.assertLessEqual(value, 1.0)
                self.assertGreaterEqual(result.total_score, 0.0)

    def test_score_all_drops_zero_totals_and_keeps_order(self):
        images = [ImageRecord(id=9), sunset_image(id=2), sunset_image(id=1)]
        results = self.scorer.score_all(images, self.analyzer.analyze("sunset"))
        self.assertEqual([result.image_id for result in results], [2, 1])

    def test_metadata_format_match(self):
        image = ImageRecord(id=1, file_format="png")
        self.assertAlmostEqual(self.scorer.score_metadata(image, self.analyzer.analyze("png")), 0.8)
        other = ImageRecord(id=2, file_format="JPEG")
        self.assertEqual(self.scorer.score_metadata(other, self.analyzer.analyze("png")), 0.0)

    def test_metadata_resolution_range(self):
        criteria = self.analyzer.analyze("high resolution")
        self.assertAlmostEqual(
            self.scorer.score_metadata(ImageRecord(id=1, resolution_category="ULTRA_HIGH"), criteria), 0.8
        )
        self.assertEqual(self.scorer.score_metadata(ImageRecord(id=2, resolution_category="LOW"), criteria), 0.0)

    def test_ai_tags_are_discounted(self):
        image = ImageRecord(id=1, tags="unrelated", ai_generated_tags="sunset")
        self.assertAlmostEqual(self.scorer.score_tags(image, self.analyzer.analyze("sunset")), 0.8)

    def test_bonus_uses_whole_days(self):
        image = ImageRecord(id=1, created_at=FIXED_NOW - timedelta(days=1, hours=22))
        bonus = self.scorer.bonus(image, self.analyzer.analyze("cats"))
        self.assertAlmostEqual(bonus, 0.05 * (1 - 1 / 365))

    def test_bonus_for_views(self):
        image = ImageRecord(id=1, view_count=99)
        bonus = self.scorer.bonus(image, self.analyzer.analyze("cats"))
        self.assertAlmostEqual(bonus, min(0.05, math.log(100) * 0.01))

    def test_timezone_aware_dates_are_converted(self):
        instant = datetime(2024, 6, 1, 2, 0, tzinfo=timezone.utc)
        local_now = instant.astimezone().replace(tzinfo=None)
        scorer = HeuristicScorer(now=lambda: local_now)
        # 2024-05-30 18:00 UTC, 32 hours before the instant
        created = datetime(2024, 5, 31, 4, 0, tzinfo=timezone(timedelta(hours=10)))

        bonus = scorer.bonus(ImageRecord(id=1, created_at=created), self.analyzer.analyze("cats"))

        self.assertAlmostEqual(bonus, 0.05 * (1 - 1 / 365))

    def test_aware_now_with_naive_dates(self):
        instant = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        scorer = HeuristicScorer(now=lambda: instant)
        created = (instant - timedelta(days=2, hours=3)).astimezone().replace(tzinfo=None)

        bonus = scorer.bonus(ImageRecord(id=1, created_at=created), self.analyzer.analyze("cats"))

        self.assertAlmostEqual(bonus, 0.05 * (1 - 2 / 365))

    def test_old_images_penalised_for_recent_queries(self):
        image = sunset_image(created_at=FIXED_NOW - timedelta(days=800))
        self.assertAlmostEqual(self.scorer.penalty(image, self.analyzer.analyze("recent sunset")), 0.1)
        self.assertEqual(self.scorer.penalty(image, self.analyzer.analyze("sunset")), 0.0)

    def test_missing_text_penalty(self):
        self.assertAlmostEqual(self.scorer.penalty(ImageRecord(id=1), self.analyzer.analyze("cats")), 0.08)


if __name__ == "__main__":
    unittest.main()
