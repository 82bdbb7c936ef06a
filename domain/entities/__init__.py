"""Domain entities for the image relevance search system."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class QueryType(str, Enum):
    SEMANTIC = "SEMANTIC"
    TECHNICAL = "TECHNICAL"
    VISUAL = "VISUAL"
    COLOR = "COLOR"
    CONTENT = "CONTENT"


class QueryComplexity(str, Enum):
    SIMPLE = "SIMPLE"
    MEDIUM = "MEDIUM"
    COMPLEX = "COMPLEX"


class ResolutionCategory(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    ULTRA_HIGH = "ULTRA_HIGH"


class Orientation(str, Enum):
    LANDSCAPE = "LANDSCAPE"
    PORTRAIT = "PORTRAIT"
    SQUARE = "SQUARE"
    PANORAMIC = "PANORAMIC"


class RankingStatus(str, Enum):
    RANKED = "RANKED"
    NO_MATCHES = "NO_MATCHES"
    UNAVAILABLE = "UNAVAILABLE"


RESOLUTION_ORDER: dict[str, int] = {
    ResolutionCategory.LOW.value: 1,
    ResolutionCategory.MEDIUM.value: 2,
    ResolutionCategory.HIGH.value: 3,
    ResolutionCategory.ULTRA_HIGH.value: 4,
}


@dataclass(slots=True)
class ImageRecord:
    """Metadata for a stored image as seen by the search pipeline.

    Only ``id`` is required. Visual levels (brightness, contrast, saturation,
    visual complexity) are normalised to ``0.0..1.0``.
    """

    id: int
    file_name: str | None = None
    original_name: str | None = None
    description: str | None = None
    tags: str | None = None
    ai_generated_tags: str | None = None
    semantic_keywords: str | None = None
    file_format: str | None = None
    file_type: str | None = None
    file_size: int | None = None
    width: int | None = None
    height: int | None = None
    resolution_category: str | None = None
    orientation: str | None = None
    has_transparency: bool | None = None
    is_animated: bool | None = None
    brightness_level: float | None = None
    contrast_level: float | None = None
    saturation_level: float | None = None
    visual_complexity: float | None = None
    dominant_colors: str | None = None
    content_category: str | None = None
    camera_make: str | None = None
    camera_model: str | None = None
    focal_length: float | None = None
    aperture: str | None = None
    iso_speed: int | None = None
    exposure_time: str | None = None
    gps_latitude: float | None = None
    gps_longitude: float | None = None
    created_at: datetime | None = None
    view_count: int | None = None

    def has_camera_metadata(self) -> bool:
        return any(
            value is not None
            for value in (
                self.camera_make,
                self.camera_model,
                self.focal_length,
                self.aperture,
                self.iso_speed,
                self.exposure_time,
            )
        )

    def has_location_data(self) -> bool:
        return self.gps_latitude is not None and self.gps_longitude is not None


@dataclass(frozen=True, slots=True)
class TechnicalFilters:
    file_formats: frozenset[str] = frozenset()
    min_resolution_category: str | None = None
    max_resolution_category: str | None = None
    min_file_size: int | None = None
    max_file_size: int | None = None
    has_transparency: bool | None = None
    is_animated: bool | None = None


@dataclass(frozen=True, slots=True)
class VisualFilters:
    orientation: str | None = None
    color_keywords: frozenset[str] = frozenset()
    dominant_colors: frozenset[str] = frozenset()
    min_brightness: float | None = None
    max_brightness: float | None = None
    min_contrast: float | None = None
    max_contrast: float | None = None
    min_saturation: float | None = None
    max_saturation: float | None = None


@dataclass(frozen=True, slots=True)
class ContentFilters:
    content_categories: frozenset[str] = frozenset()
    min_complexity: float | None = None
    max_complexity: float | None = None
    has_text: bool = False
    has_faces: bool = False
    has_objects: bool = False


@dataclass(frozen=True, slots=True)
class SearchCriteria:
    """Structured, immutable interpretation of a single search query."""

    original_query: str
    normalized_query: str
    primary_type: QueryType = QueryType.SEMANTIC
    complexity: QueryComplexity = QueryComplexity.SIMPLE
    search_terms: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    phrases: tuple[str, ...] = ()
    has_negation: bool = False
    has_comparison: bool = False
    has_time_reference: bool = False
    technical_filters: TechnicalFilters = field(default_factory=TechnicalFilters)
    visual_filters: VisualFilters = field(default_factory=VisualFilters)
    content_filters: ContentFilters = field(default_factory=ContentFilters)


@dataclass(slots=True)
class ScoredResult:
    """Heuristic relevance of one image with its per-component breakdown."""

    image_id: int
    image: ImageRecord
    description_score: float = 0.0
    tag_score: float = 0.0
    filename_score: float = 0.0
    metadata_score: float = 0.0
    bonus_score: float = 0.0
    penalty_score: float = 0.0
    total_score: float = 0.0
    explanation: str = ""

    @property
    def confidence_level(self) -> str:
        if self.total_score >= 0.8:
            return "HIGH"
        if self.total_score >= 0.5:
            return "MEDIUM"
        if self.total_score >= 0.2:
            return "LOW"
        return "MINIMAL"


@dataclass(slots=True)
class RankingOutcome:
    """What the external ranker produced for one request."""

    status: RankingStatus
    image_ids: list[int] = field(default_factory=list)
    reason: str = ""

    @classmethod
    def ranked(cls, image_ids: list[int]) -> RankingOutcome:
        return cls(status=RankingStatus.RANKED, image_ids=list(image_ids))

    @classmethod
    def no_matches(cls) -> RankingOutcome:
        return cls(status=RankingStatus.NO_MATCHES)

    @classmethod
    def unavailable(cls, reason: str) -> RankingOutcome:
        return cls(status=RankingStatus.UNAVAILABLE, reason=reason)


@dataclass(slots=True)
class PagedResult:
    """One page of ranked results plus the metadata needed to render it."""

    results: list[ScoredResult] = field(default_factory=list)
    total_results: int = 0
    current_page: int = 1
    page_size: int = 20
    total_pages: int = 0
    strategy_description: str = ""
    ranker_used: bool = False
    query_type: QueryType | None = None
    insights: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "QueryType",
    "QueryComplexity",
    "ResolutionCategory",
    "Orientation",
    "RankingStatus",
    "RESOLUTION_ORDER",
    "ImageRecord",
    "TechnicalFilters",
    "VisualFilters",
    "ContentFilters",
    "SearchCriteria",
    "ScoredResult",
    "RankingOutcome",
    "PagedResult",
]
