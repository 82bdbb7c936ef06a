"""Weighted multi-factor relevance scoring for image records."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable

from application.services.tag_normalizer import TagNormalizer
from domain.entities import (
    RESOLUTION_ORDER,
    ImageRecord,
    QueryComplexity,
    QueryType,
    ScoredResult,
    SearchCriteria,
)

logger = logging.getLogger(__name__)

EXACT_MATCH_BONUS = 1.0
PARTIAL_MATCH_BONUS = 0.6
SEMANTIC_MATCH_BONUS = 0.4
METADATA_MATCH_BONUS = 0.8
SIMILARITY_THRESHOLD = 0.7
AI_TAG_FACTOR = 0.8
FILE_NAME_FACTOR = 0.8
FRESHNESS_DECAY_DAYS = 365.0


@dataclass(frozen=True, slots=True)
class ComponentWeights:
    description: float
    tag: float
    filename: float
    metadata: float


_BASE_WEIGHTS: dict[QueryType, ComponentWeights] = {
    QueryType.SEMANTIC: ComponentWeights(0.45, 0.35, 0.15, 0.05),
    QueryType.TECHNICAL: ComponentWeights(0.20, 0.20, 0.20, 0.40),
    QueryType.VISUAL: ComponentWeights(0.30, 0.25, 0.15, 0.30),
    QueryType.COLOR: ComponentWeights(0.35, 0.35, 0.15, 0.15),
    QueryType.CONTENT: ComponentWeights(0.40, 0.30, 0.15, 0.15),
}
DEFAULT_WEIGHTS = ComponentWeights(0.40, 0.30, 0.20, 0.10)


def weights_for(query_type: QueryType | None, complexity: QueryComplexity) -> ComponentWeights:
    """Return component weights for a query type.

    Complex queries lean on description and tags; the adjusted weights are not
    renormalised.
    """
    weights = _BASE_WEIGHTS.get(query_type, DEFAULT_WEIGHTS) if query_type else DEFAULT_WEIGHTS
    if complexity is QueryComplexity.COMPLEX:
        weights = ComponentWeights(
            description=min(0.5, weights.description * 1.1),
            tag=min(0.4, weights.tag * 1.1),
            filename=weights.filename * 0.9,
            metadata=weights.metadata * 0.9,
        )
    return weights


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def text_similarity(first: str, second: str) -> float:
    """Cheap similarity: equality, containment, then character-set overlap."""
    if first == second:
        return 1.0
    if first in second or second in first:
        return 0.8
    left, right = set(first), set(second)
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


class HeuristicScorer:
    """Scores records against criteria from description, tags, names and metadata."""

    def __init__(
        self,
        tag_normalizer: TagNormalizer | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._tags = tag_normalizer or TagNormalizer()
        self._now = now

    def score_all(self, images: Iterable[ImageRecord], criteria: SearchCriteria) -> list[ScoredResult]:
        """Score every image, keeping only positive totals in input order."""
        results = [self.score(image, criteria) for image in images]
        positive = [result for result in results if result.total_score > 0.0]
        logger.debug("Scored %d images, %d with a positive score", len(results), len(positive))
        return positive

    def score(self, image: ImageRecord, criteria: SearchCriteria) -> ScoredResult:
        description = self.score_description(image, criteria)
        tags = self.score_tags(image, criteria)
        filename = self.score_filename(image, criteria)
        metadata = self.score_metadata(image, criteria)

        weights = weights_for(criteria.primary_type, criteria.complexity)
        weighted = (
            description * weights.description
            + tags * weights.tag
            + filename * weights.filename
            + metadata * weights.metadata
        )
        bonus = self.bonus(image, criteria)
        penalty = self.penalty(image, criteria)

        result = ScoredResult(
            image_id=image.id,
            image=image,
            description_score=description,
            tag_score=tags,
            filename_score=filename,
            metadata_score=metadata,
            bonus_score=bonus,
            penalty_score=penalty,
            total_score=max(0.0, weighted + bonus - penalty),
        )
        result.explanation = self.explain(result)
        logger.debug(
            "Image %s: desc=%.2f tag=%.2f file=%.2f meta=%.2f bonus=%.2f penalty=%.2f total=%.3f",
            image.id,
            description,
            tags,
            filename,
            metadata,
            bonus,
            penalty,
            result.total_score,
        )
        return result

    def score_description(self, image: ImageRecord, criteria: SearchCriteria) -> float:
        if _blank(image.description):
            return 0.0
        description = image.description.lower()
        score = 0.0

        for phrase in criteria.phrases:
            if phrase.lower() in description:
                score += EXACT_MATCH_BONUS

        for keyword in criteria.keywords:
            keyword = keyword.lower()
            if keyword in description:
                score += EXACT_MATCH_BONUS if description == keyword else PARTIAL_MATCH_BONUS

        for term in criteria.search_terms:
            if term in criteria.keywords:
                continue
            similarity = text_similarity(description, term.lower())
            if similarity > SIMILARITY_THRESHOLD:
                score += SEMANTIC_MATCH_BONUS * similarity

        return min(1.0, score / max(1, len(criteria.search_terms)))

    def score_tags(self, image: ImageRecord, criteria: SearchCriteria) -> float:
        tags = self._tags.normalize(image.tags)
        if not tags:
            return 0.0
        relevance = self._tags.relevance(tags, criteria.original_query)

        ai_tags = self._tags.normalize(image.ai_generated_tags)
        if ai_tags:
            ai_relevance = self._tags.relevance(ai_tags, criteria.original_query)
            relevance = max(relevance, ai_relevance * AI_TAG_FACTOR)
        return relevance

    def score_filename(self, image: ImageRecord, criteria: SearchCriteria) -> float:
        score = 0.0
        if image.original_name is not None:
            score = max(score, self._match_text(image.original_name, criteria))
        if image.file_name is not None:
            score = max(score, self._match_text(image.file_name, criteria) * FILE_NAME_FACTOR)
        return score

    def score_metadata(self, image: ImageRecord, criteria: SearchCriteria) -> float:
        technical = criteria.technical_filters
        visual = criteria.visual_filters
        content = criteria.content_filters
        checks = 0
        score = 0.0

        if technical.file_formats:
            checks += 1
            formats = {value.upper() for value in technical.file_formats}
            if image.file_format and image.file_format.upper() in formats:
                score += METADATA_MATCH_BONUS

        if technical.min_resolution_category or technical.max_resolution_category:
            checks += 1
            if image.resolution_category is not None:
                category = image.resolution_category
                above_min = technical.min_resolution_category is None or (
                    _compare_resolution(category, technical.min_resolution_category) >= 0
                )
                below_max = technical.max_resolution_category is None or (
                    _compare_resolution(category, technical.max_resolution_category) <= 0
                )
                if above_min and below_max:
                    score += METADATA_MATCH_BONUS

        if visual.orientation is not None:
            checks += 1
            if image.orientation is not None and image.orientation.upper() == visual.orientation.upper():
                score += METADATA_MATCH_BONUS

        if visual.min_brightness is not None or visual.max_brightness is not None:
            checks += 1
            if image.brightness_level is not None:
                level = image.brightness_level
                if (visual.min_brightness is None or level >= visual.min_brightness) and (
                    visual.max_brightness is None or level <= visual.max_brightness
                ):
                    score += METADATA_MATCH_BONUS

        if content.content_categories:
            checks += 1
            if image.content_category and image.content_category.upper() in content.content_categories:
                score += METADATA_MATCH_BONUS

        if checks == 0:
            return 0.0
        return min(1.0, score / checks)

    def bonus(self, image: ImageRecord, criteria: SearchCriteria) -> float:
        bonus = 0.0

        if image.created_at is not None:
            days = self._days_since(image.created_at)
            factor = 0.2 if criteria.has_time_reference else 0.05
            bonus += max(0.0, factor * (1.0 - days / FRESHNESS_DECAY_DAYS))

        enrichment = [
            not _blank(image.description),
            not _blank(image.tags),
            not _blank(image.ai_generated_tags),
            not _blank(image.semantic_keywords),
            image.has_camera_metadata(),
            image.has_location_data(),
        ]
        bonus += min(0.1, sum(enrichment) * 0.02)

        if image.view_count is not None and image.view_count > 0:
            bonus += min(0.05, math.log(image.view_count + 1) * 0.01)

        return bonus

    def penalty(self, image: ImageRecord, criteria: SearchCriteria) -> float:
        penalty = 0.0
        if _blank(image.description):
            penalty += 0.05
        if _blank(image.tags):
            penalty += 0.03
        if criteria.has_time_reference and image.created_at is not None:
            if self._days_since(image.created_at) > FRESHNESS_DECAY_DAYS:
                penalty += 0.1
        return penalty

    @staticmethod
    def explain(result: ScoredResult) -> str:
        reasons: list[str] = []
        if result.description_score > 0.5:
            reasons.append("Strong description match")
        elif result.description_score > 0.2:
            reasons.append("Partial description match")
        if result.tag_score > 0.5:
            reasons.append("Relevant tags")
        elif result.tag_score > 0.2:
            reasons.append("Some tag relevance")
        if result.filename_score > 0.3:
            reasons.append("Filename match")
        if result.metadata_score > 0.5:
            reasons.append("Technical specifications match")
        if result.bonus_score > 0.05:
            reasons.append("Quality/freshness bonus")
        return ", ".join(reasons) if reasons else "Basic relevance"

    def _days_since(self, created_at: datetime) -> int:
        """Whole days between ``created_at`` and now; naive values are local time."""
        now = self._now()
        if created_at.tzinfo is not None and now.tzinfo is None:
            now = now.astimezone(created_at.tzinfo)
        elif created_at.tzinfo is None and now.tzinfo is not None:
            now = now.astimezone().replace(tzinfo=None)
        return int((now - created_at).total_seconds() / 86400)

    @staticmethod
    def _match_text(text: str, criteria: SearchCriteria) -> float:
        if _blank(text):
            return 0.0
        lowered = text.lower()
        score = 0.0
        for keyword in criteria.keywords:
            if keyword.lower() in lowered:
                score += PARTIAL_MATCH_BONUS
        for phrase in criteria.phrases:
            if phrase.lower() in lowered:
                score += EXACT_MATCH_BONUS
        return min(1.0, score / max(1, len(criteria.search_terms)))


def _compare_resolution(first: str, second: str) -> int:
    left = RESOLUTION_ORDER.get(first.upper())
    right = RESOLUTION_ORDER.get(second.upper())
    if left is None or right is None:
        return 0
    return (left > right) - (left < right)


__all__ = [
    "ComponentWeights",
    "DEFAULT_WEIGHTS",
    "HeuristicScorer",
    "text_similarity",
    "weights_for",
]
