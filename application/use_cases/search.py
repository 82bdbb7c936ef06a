"""Use case that ranks stored images for a free-text query."""
from __future__ import annotations

import dataclasses
import logging
from typing import Sequence

from application.services.heuristic_scorer import HeuristicScorer
from application.services.query_analyzer import QueryAnalyzer
from application.services.result_assembler import ResultAssembler
from domain.entities import ImageRecord, PagedResult, RankingStatus, SearchCriteria
from domain.errors import InvalidSearchRequest
from domain.interfaces import CandidateSource, RelevanceRanker

logger = logging.getLogger(__name__)


def apply_request_filters(
    criteria: SearchCriteria,
    *,
    file_formats: Sequence[str] | None = None,
    orientation: str | None = None,
) -> SearchCriteria:
    """Return criteria with caller-supplied filters replacing the detected ones."""
    formats = [value.strip().upper() for value in file_formats or () if value and value.strip()]
    if formats:
        criteria = dataclasses.replace(
            criteria,
            technical_filters=dataclasses.replace(criteria.technical_filters, file_formats=frozenset(formats)),
        )
    if orientation and orientation.strip():
        criteria = dataclasses.replace(
            criteria,
            visual_filters=dataclasses.replace(criteria.visual_filters, orientation=orientation.strip().upper()),
        )
    return criteria


def _validate(query: str | None, page: int, page_size: int, min_score: float | None, has_filters: bool) -> None:
    if page < 1:
        raise InvalidSearchRequest(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise InvalidSearchRequest(f"page_size must be > 0, got {page_size}")
    if min_score is not None and min_score < 0:
        raise InvalidSearchRequest(f"min_score must be >= 0, got {min_score}")
    if (query is None or not query.strip()) and not has_filters:
        raise InvalidSearchRequest("Search query must not be empty when no filters are given")


def search(
    query: str,
    page: int = 1,
    page_size: int = 20,
    *,
    candidate_source: CandidateSource,
    ranker: RelevanceRanker,
    analyzer: QueryAnalyzer | None = None,
    scorer: HeuristicScorer | None = None,
    assembler: ResultAssembler | None = None,
    file_formats: Sequence[str] | None = None,
    orientation: str | None = None,
    min_score: float | None = None,
    candidate_limit: int = 1000,
) -> PagedResult:
    """Analyze the query, narrow candidates, rank or score them and return one page.

    The external ranker only narrows the candidate set: whatever it returns is
    re-scored heuristically and ordered by that score. When the ranker is
    disabled, fails, reports no matches or names only unknown ids, the whole
    candidate set is scored instead.
    """

    has_filters = bool(file_formats) or bool(orientation and orientation.strip())
    _validate(query, page, page_size, min_score, has_filters)

    analyzer = analyzer or QueryAnalyzer()
    scorer = scorer or HeuristicScorer()
    assembler = assembler or ResultAssembler()

    criteria = apply_request_filters(analyzer.analyze(query), file_formats=file_formats, orientation=orientation)
    logger.info(
        "Image search: query=%r type=%s page=%d size=%d",
        query,
        criteria.primary_type.value,
        page,
        page_size,
    )

    candidates = candidate_source.fetch_candidates(criteria, limit=candidate_limit)
    if not candidates:
        logger.info("No candidates matched the filters for query %r", query)
        return assembler.assemble([], criteria, page, page_size, min_score=min_score)

    narrowed, ranker_used = _narrow_with_ranker(query, candidates, ranker)
    scored = scorer.score_all(narrowed, criteria)
    result = assembler.assemble(
        scored,
        criteria,
        page,
        page_size,
        ranker_used=ranker_used,
        min_score=min_score,
    )
    logger.info(
        "Image search finished: %d candidates, %d results, ranker_used=%s",
        len(candidates),
        result.total_results,
        ranker_used,
    )
    return result


def _narrow_with_ranker(
    query: str,
    candidates: list[ImageRecord],
    ranker: RelevanceRanker,
) -> tuple[list[ImageRecord], bool]:
    if not ranker.enabled:
        return candidates, False

    outcome = ranker.rank(query, candidates)
    if outcome.status is RankingStatus.RANKED and outcome.image_ids:
        by_id = {image.id: image for image in candidates}
        narrowed = [by_id[image_id] for image_id in outcome.image_ids if image_id in by_id]
        if narrowed:
            return narrowed, True

    if outcome.status is RankingStatus.UNAVAILABLE:
        logger.info("Ranker unavailable (%s); scoring all %d candidates", outcome.reason, len(candidates))
    else:
        logger.info("Ranker found no matches; scoring all %d candidates", len(candidates))
    return candidates, False


__all__ = ["search", "apply_request_filters"]
