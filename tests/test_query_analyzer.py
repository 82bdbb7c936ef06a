import unittest

from application.services.keyword_tables import KeywordTables
from application.services.query_analyzer import LARGE_FILE_BYTES, QueryAnalyzer
from domain.entities import QueryComplexity, QueryType


class TestQueryClassification(unittest.TestCase):
    def setUp(self) -> None:
        self.analyzer = QueryAnalyzer()

    def test_transparent_png_is_technical(self):
        criteria = self.analyzer.analyze("transparent png image")

        self.assertEqual(criteria.primary_type, QueryType.TECHNICAL)
        self.assertEqual(criteria.complexity, QueryComplexity.MEDIUM)
        self.assertEqual(criteria.keywords, ("transparent", "png", "image"))
        self.assertTrue(criteria.technical_filters.has_transparency)
        self.assertEqual(criteria.technical_filters.file_formats, frozenset({"PNG"}))

    def test_color_wins_over_other_types(self):
        criteria = self.analyzer.analyze("red landscape")

        self.assertEqual(criteria.primary_type, QueryType.COLOR)
        self.assertEqual(criteria.visual_filters.dominant_colors, frozenset({"red"}))
        self.assertEqual(criteria.visual_filters.orientation, "LANDSCAPE")

    def test_plain_words_are_semantic(self):
        criteria = self.analyzer.analyze("A photo of   the Beach")

        self.assertEqual(criteria.primary_type, QueryType.SEMANTIC)
        self.assertEqual(criteria.normalized_query, "a photo of the beach")
        self.assertEqual(criteria.search_terms, ("a", "photo", "of", "the", "beach"))
        self.assertEqual(criteria.keywords, ("photo", "beach"))

    def test_complex_visual_query(self):
        criteria = self.analyzer.analyze("very bright landscape photo with mountains and lake view")

        self.assertEqual(criteria.primary_type, QueryType.VISUAL)
        self.assertEqual(criteria.complexity, QueryComplexity.COMPLEX)
        self.assertEqual(criteria.visual_filters.min_brightness, 0.7)
        self.assertEqual(criteria.content_filters.content_categories, frozenset({"NATURE"}))

    def test_empty_query(self):
        criteria = self.analyzer.analyze("")

        self.assertEqual(criteria.primary_type, QueryType.SEMANTIC)
        self.assertEqual(criteria.complexity, QueryComplexity.SIMPLE)
        self.assertEqual(criteria.search_terms, ())
        self.assertEqual(criteria.keywords, ())


class TestQueryFeatures(unittest.TestCase):
    def setUp(self) -> None:
        self.analyzer = QueryAnalyzer()

    def test_quoted_phrases_come_from_original_query(self):
        criteria = self.analyzer.analyze('beach "Golden Hour"')
        self.assertEqual(criteria.phrases, ("Golden Hour",))

    def test_keywords_are_deduplicated_in_order(self):
        criteria = self.analyzer.analyze("cat dog cat")
        self.assertEqual(criteria.keywords, ("cat", "dog"))

    def test_flags(self):
        self.assertTrue(self.analyzer.analyze("cats not dogs").has_negation)
        self.assertTrue(self.analyzer.analyze("files larger than 2mb").has_comparison)
        self.assertTrue(self.analyzer.analyze("recent uploads").has_time_reference)
        self.assertFalse(self.analyzer.analyze("cats").has_negation)

    def test_size_and_format_filters(self):
        criteria = self.analyzer.analyze("large file jpg")

        self.assertEqual(criteria.technical_filters.min_file_size, LARGE_FILE_BYTES)
        self.assertEqual(criteria.technical_filters.file_formats, frozenset({"JPEG"}))

    def test_dark_sets_brightness_ceiling_and_black_family(self):
        criteria = self.analyzer.analyze("dark moody")

        self.assertEqual(criteria.visual_filters.max_brightness, 0.3)
        self.assertIn("black", criteria.visual_filters.dominant_colors)
        self.assertEqual(criteria.primary_type, QueryType.COLOR)

    def test_custom_tables_are_used(self):
        tables = KeywordTables(content=("kitten",))
        criteria = QueryAnalyzer(tables).analyze("kitten sleeping")
        self.assertEqual(criteria.primary_type, QueryType.CONTENT)


if __name__ == "__main__":
    unittest.main()
