"""Use case for registering image metadata with the search store."""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Iterable

from application.services.tag_normalizer import TagNormalizer
from domain.entities import ImageRecord
from domain.errors import InvalidImageRecord
from domain.interfaces import ImageRepository

logger = logging.getLogger(__name__)

TAG_FIELDS = ("tags", "ai_generated_tags")


def prepare_image(image: ImageRecord, tag_normalizer: TagNormalizer, now: datetime) -> ImageRecord:
    """Return a validated, normalized copy of ``image``; the input is left untouched."""
    changes: dict[str, object] = {}
    for field_name in TAG_FIELDS:
        raw = getattr(image, field_name)
        validation = tag_normalizer.validate(raw)
        if not validation.valid:
            raise InvalidImageRecord(f"{field_name}: " + "; ".join(validation.messages))
        if raw is not None:
            changes[field_name] = tag_normalizer.format_tags(validation.processed_tags) or None
    if image.created_at is None:
        changes["created_at"] = now
    if image.file_format:
        changes["file_format"] = image.file_format.upper()
    return dataclasses.replace(image, **changes)


def ingest_images(
    images: Iterable[ImageRecord],
    *,
    repository: ImageRepository,
    tag_normalizer: TagNormalizer | None = None,
) -> list[ImageRecord]:
    """Validate the whole batch, then store it, returning the stored copies.

    Nothing is written when any record fails validation.
    """

    tags = tag_normalizer or TagNormalizer()
    now = datetime.now()
    prepared = [prepare_image(image, tags, now) for image in images]

    for image in prepared:
        repository.add(image)

    logger.info("Ingested %d image records", len(prepared))
    return prepared


__all__ = ["ingest_images", "prepare_image"]
