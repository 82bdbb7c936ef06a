"""Thresholding, ordering, pagination and presentation of scored results."""
from __future__ import annotations

import math
from typing import Any, Iterable

from domain.entities import PagedResult, ScoredResult, SearchCriteria

DEFAULT_MIN_SCORE = 0.1


def order_results(results: Iterable[ScoredResult]) -> list[ScoredResult]:
    """Highest total first; equal totals fall back to ascending image id."""
    return sorted(results, key=lambda result: (-result.total_score, result.image_id))


def search_quality(highest: float, average: float, count: int) -> str:
    if count == 0:
        return "NO_RESULTS"
    if highest >= 0.8 and average >= 0.6 and count >= 5:
        return "EXCELLENT"
    if highest >= 0.7 and average >= 0.5 and count >= 3:
        return "GOOD"
    if highest >= 0.5 and average >= 0.3:
        return "FAIR"
    if highest >= 0.3:
        return "POOR"
    return "VERY_POOR"


class ResultAssembler:
    """Turns a scored candidate set into one :class:`PagedResult` page."""

    def __init__(self, default_min_score: float = DEFAULT_MIN_SCORE) -> None:
        self._default_min_score = default_min_score

    def assemble(
        self,
        scored: Iterable[ScoredResult],
        criteria: SearchCriteria,
        page: int = 1,
        page_size: int = 20,
        *,
        ranker_used: bool = False,
        min_score: float | None = None,
    ) -> PagedResult:
        threshold = self._default_min_score if min_score is None else min_score
        kept = order_results(result for result in scored if result.total_score >= threshold)

        total = len(kept)
        start = (page - 1) * page_size
        page_results = kept[start : start + page_size]

        return PagedResult(
            results=page_results,
            total_results=total,
            current_page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total else 0,
            strategy_description=self.describe_strategy(criteria, ranker_used) if total else "No results found",
            ranker_used=ranker_used,
            query_type=criteria.primary_type,
            insights=self.insights(kept, page_results, criteria),
        )

    @staticmethod
    def describe_strategy(criteria: SearchCriteria, ranker_used: bool) -> str:
        if ranker_used:
            parts = ["AI-assisted candidate ranking with weighted re-scoring"]
        else:
            parts = ["Weighted scoring algorithm"]
        parts[0] += f" with {criteria.primary_type.value.lower()} focus"
        if criteria.technical_filters.file_formats:
            parts.append("filtered by file formats")
        if criteria.visual_filters.orientation is not None:
            parts.append("filtered by orientation")
        return ", ".join(parts)

    @staticmethod
    def insights(
        ordered: list[ScoredResult],
        page_results: list[ScoredResult],
        criteria: SearchCriteria,
    ) -> dict[str, Any]:
        scores = [result.total_score for result in ordered]
        highest = scores[0] if scores else 0.0
        overall_average = sum(scores) / len(scores) if scores else 0.0
        page_average = (
            sum(result.total_score for result in page_results) / len(page_results) if page_results else 0.0
        )

        components = {
            "description": sum(result.description_score for result in ordered),
            "tags": sum(result.tag_score for result in ordered),
            "filename": sum(result.filename_score for result in ordered),
            "metadata": sum(result.metadata_score for result in ordered),
        }
        component_total = sum(components.values())
        distribution = (
            {name: value / component_total for name, value in components.items()} if component_total > 0 else {}
        )

        return {
            "query_type": criteria.primary_type.value,
            "search_complexity": len(criteria.search_terms),
            "has_filters": bool(criteria.technical_filters.file_formats)
            or criteria.visual_filters.orientation is not None,
            "average_score": page_average,
            "search_quality": search_quality(highest, overall_average, len(ordered)),
            "match_distribution": distribution,
        }


__all__ = ["DEFAULT_MIN_SCORE", "ResultAssembler", "order_results", "search_quality"]
