"""Хранилище метаданных изображений в памяти для демо и тестов."""
from __future__ import annotations

from typing import Iterable

from domain.entities import RESOLUTION_ORDER, ImageRecord, SearchCriteria
from domain.interfaces import ImageRepository

KEYWORD_FIELDS = ("file_name", "original_name", "description", "tags", "ai_generated_tags", "semantic_keywords")
PHRASE_FIELDS = ("description", "tags", "ai_generated_tags", "semantic_keywords")


def _text_fields(image: ImageRecord, names: Iterable[str]) -> list[str]:
    return [value.lower() for value in (getattr(image, name) for name in names) if value]


def _within(value: float | int | None, lower: float | int | None, upper: float | int | None) -> bool:
    if lower is None and upper is None:
        return True
    if value is None:
        return False
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


def _resolution_allowed(category: str | None, lower: str | None, upper: str | None) -> bool:
    if lower is None and upper is None:
        return True
    rank = RESOLUTION_ORDER.get((category or "").upper())
    if rank is None:
        return False
    min_rank = RESOLUTION_ORDER.get(lower.upper(), 1) if lower else 1
    max_rank = RESOLUTION_ORDER.get(upper.upper(), len(RESOLUTION_ORDER)) if upper else len(RESOLUTION_ORDER)
    return min_rank <= rank <= max_rank


def matches_criteria(image: ImageRecord, criteria: SearchCriteria) -> bool:
    """Apply every populated filter; fields OR their values, groups AND together."""
    if criteria.keywords:
        texts = _text_fields(image, KEYWORD_FIELDS)
        if not any(keyword.lower() in text for keyword in criteria.keywords for text in texts):
            return False
    if criteria.phrases:
        texts = _text_fields(image, PHRASE_FIELDS)
        if not any(phrase.lower() in text for phrase in criteria.phrases for text in texts):
            return False

    technical = criteria.technical_filters
    if technical.file_formats:
        formats = {value.upper() for value in technical.file_formats}
        if (image.file_format or "").upper() not in formats:
            return False
    if not _resolution_allowed(
        image.resolution_category, technical.min_resolution_category, technical.max_resolution_category
    ):
        return False
    if not _within(image.file_size, technical.min_file_size, technical.max_file_size):
        return False
    if technical.has_transparency is not None and image.has_transparency != technical.has_transparency:
        return False
    if technical.is_animated is not None and image.is_animated != technical.is_animated:
        return False

    visual = criteria.visual_filters
    if visual.orientation is not None and (image.orientation or "").upper() != visual.orientation.upper():
        return False
    if not _within(image.brightness_level, visual.min_brightness, visual.max_brightness):
        return False
    if not _within(image.contrast_level, visual.min_contrast, visual.max_contrast):
        return False
    if not _within(image.saturation_level, visual.min_saturation, visual.max_saturation):
        return False
    if visual.dominant_colors:
        colors = (image.dominant_colors or "").lower()
        if not any(color.lower() in colors for color in visual.dominant_colors):
            return False

    content = criteria.content_filters
    if content.content_categories and (image.content_category or "").upper() not in content.content_categories:
        return False
    if not _within(image.visual_complexity, content.min_complexity, content.max_complexity):
        return False
    return True


class InMemoryImageRepository(ImageRepository):
    """Хранит записи в словаре и фильтрует их перебором."""

    def __init__(self, images: Iterable[ImageRecord] = ()) -> None:
        self._images: dict[int, ImageRecord] = {}
        self._next_id = 1
        for image in images:
            self.add(image)

    def add(self, image: ImageRecord) -> int:
        if not image.id:
            image.id = self._next_id
        self._images[image.id] = image
        self._next_id = max(self._next_id, image.id + 1)
        return image.id

    def get(self, image_id: int) -> ImageRecord | None:
        return self._images.get(image_id)

    def list(self) -> list[ImageRecord]:
        return list(self._images.values())

    def fetch_candidates(self, criteria: SearchCriteria, limit: int = 1000) -> list[ImageRecord]:
        candidates: list[ImageRecord] = []
        for image in self._images.values():
            if len(candidates) >= limit:
                break
            if matches_criteria(image, criteria):
                candidates.append(image)
        return candidates


__all__ = ["InMemoryImageRepository", "matches_criteria"]
