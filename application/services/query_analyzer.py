"""Rule-based interpretation of free-text image search queries."""
from __future__ import annotations

import logging
import re

from application.services.keyword_tables import DEFAULT_KEYWORD_TABLES, KeywordTables
from domain.entities import (
    ContentFilters,
    QueryComplexity,
    QueryType,
    ResolutionCategory,
    SearchCriteria,
    TechnicalFilters,
    VisualFilters,
)

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_QUOTED_PHRASE = re.compile(r'"([^"]+)"')

LARGE_FILE_BYTES = 1024 * 1024
SMALL_FILE_BYTES = 100 * 1024


def _contains_any(text: str, needles: tuple[str, ...] | list[str]) -> bool:
    return any(needle in text for needle in needles)


class QueryAnalyzer:
    """Builds :class:`SearchCriteria` from a raw query in a single pass."""

    def __init__(self, tables: KeywordTables = DEFAULT_KEYWORD_TABLES) -> None:
        self._tables = tables

    def analyze(self, query: str | None) -> SearchCriteria:
        original = query or ""
        normalized = self.normalize(original)
        terms = tuple(normalized.split())

        criteria = SearchCriteria(
            original_query=original,
            normalized_query=normalized,
            primary_type=self._classify_type(normalized),
            complexity=self._classify_complexity(terms),
            search_terms=terms,
            keywords=self._extract_keywords(terms),
            phrases=tuple(_QUOTED_PHRASE.findall(original)),
            has_negation="not " in normalized or "-" in normalized,
            has_comparison=_contains_any(normalized, ("larger than", "smaller than", ">", "<")),
            has_time_reference=_contains_any(normalized, ("recent", "old", "new")),
            technical_filters=self._technical_filters(normalized),
            visual_filters=self._visual_filters(normalized),
            content_filters=self._content_filters(normalized),
        )
        logger.debug(
            "Built search criteria: type=%s, complexity=%s, terms=%d",
            criteria.primary_type.value,
            criteria.complexity.value,
            len(criteria.search_terms),
        )
        return criteria

    @staticmethod
    def normalize(query: str) -> str:
        return _WHITESPACE.sub(" ", query.strip().lower())

    def _classify_type(self, query: str) -> QueryType:
        if _contains_any(query, self._tables.all_color_terms()):
            return QueryType.COLOR
        if _contains_any(query, self._tables.technical):
            return QueryType.TECHNICAL
        if _contains_any(query, self._tables.visual):
            return QueryType.VISUAL
        if _contains_any(query, self._tables.content):
            return QueryType.CONTENT
        return QueryType.SEMANTIC

    @staticmethod
    def _classify_complexity(terms: tuple[str, ...]) -> QueryComplexity:
        if len(terms) <= 2:
            return QueryComplexity.SIMPLE
        if len(terms) <= 5:
            return QueryComplexity.MEDIUM
        return QueryComplexity.COMPLEX

    def _extract_keywords(self, terms: tuple[str, ...]) -> tuple[str, ...]:
        keywords = [
            term for term in terms if term not in self._tables.stop_words and len(term) > 2
        ]
        return tuple(dict.fromkeys(keywords))

    def _technical_filters(self, query: str) -> TechnicalFilters:
        formats = {
            file_format
            for triggers, file_format in self._tables.file_formats
            if _contains_any(query, triggers)
        }

        min_resolution = None
        max_resolution = None
        if _contains_any(query, ("high resolution", "hd", "high quality")):
            min_resolution = ResolutionCategory.HIGH.value
        if _contains_any(query, ("low resolution", "small")):
            max_resolution = ResolutionCategory.LOW.value

        min_size = LARGE_FILE_BYTES if _contains_any(query, ("large file", "big")) else None
        max_size = SMALL_FILE_BYTES if _contains_any(query, ("small file", "tiny")) else None

        return TechnicalFilters(
            file_formats=frozenset(formats),
            min_resolution_category=min_resolution,
            max_resolution_category=max_resolution,
            min_file_size=min_size,
            max_file_size=max_size,
            has_transparency=True if _contains_any(query, ("transparent", "transparency")) else None,
            is_animated=True if _contains_any(query, ("animated", "animation")) else None,
        )

    def _visual_filters(self, query: str) -> VisualFilters:
        colors = frozenset(
            family
            for family, synonyms in self._tables.color_families.items()
            if _contains_any(query, synonyms)
        )

        orientation = None
        for triggers, value in self._tables.orientations:
            if _contains_any(query, triggers):
                orientation = value
                break

        return VisualFilters(
            orientation=orientation,
            color_keywords=colors,
            dominant_colors=colors,
            min_brightness=0.7 if _contains_any(query, ("bright", "light")) else None,
            max_brightness=0.3 if _contains_any(query, ("dark", "dim")) else None,
            min_saturation=0.6 if _contains_any(query, ("colorful", "vibrant")) else None,
            max_saturation=0.4 if _contains_any(query, ("muted", "desaturated")) else None,
            min_contrast=0.7 if "high contrast" in query else None,
            max_contrast=0.3 if _contains_any(query, ("low contrast", "soft")) else None,
        )

    def _content_filters(self, query: str) -> ContentFilters:
        categories = frozenset(
            category
            for triggers, category in self._tables.content_categories
            if _contains_any(query, triggers)
        )

        min_complexity = None
        max_complexity = None
        if _contains_any(query, ("simple", "minimal")):
            min_complexity, max_complexity = 0.0, 0.3
        if _contains_any(query, ("complex", "detailed")):
            min_complexity, max_complexity = 0.7, 1.0

        return ContentFilters(
            content_categories=categories,
            min_complexity=min_complexity,
            max_complexity=max_complexity,
            has_text=_contains_any(query, ("text", "writing", "words")),
            has_faces=_contains_any(query, ("face", "faces", "people")),
            has_objects=_contains_any(query, ("object", "objects", "things")),
        )


__all__ = ["QueryAnalyzer"]
