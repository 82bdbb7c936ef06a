"""Keyword vocabularies used to classify queries and derive filters."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from domain.entities import Orientation


def _freeze(mapping: dict[str, tuple[str, ...]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, slots=True)
class KeywordTables:
    """Immutable vocabularies injected into the query analyzer.

    Every lookup is a substring check against the normalized query, so
    entries are matched inside longer words as well.
    """

    color_families: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: _freeze(
            {
                "red": ("red", "crimson", "scarlet", "burgundy"),
                "blue": ("blue", "navy", "azure", "cyan"),
                "green": ("green", "emerald", "lime", "forest"),
                "yellow": ("yellow", "gold", "amber", "lemon"),
                "purple": ("purple", "violet", "magenta", "lavender"),
                "orange": ("orange", "coral", "peach", "tangerine"),
                "black": ("black", "dark", "ebony", "charcoal"),
                "white": ("white", "ivory", "pearl", "snow"),
            }
        )
    )
    technical: tuple[str, ...] = (
        "jpg", "jpeg", "png", "gif", "webp", "bmp", "tiff",
        "high", "low", "resolution", "quality", "size", "format",
        "animated", "transparent", "compression",
    )
    visual: tuple[str, ...] = (
        "landscape", "portrait", "square", "panoramic",
        "bright", "dark", "colorful", "monochrome", "vibrant",
        "contrast", "saturation", "exposure",
    )
    content: tuple[str, ...] = ("nature", "people", "architecture", "art", "technology")
    stop_words: frozenset[str] = frozenset(
        {"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}
    )
    file_formats: tuple[tuple[tuple[str, ...], str], ...] = (
        (("jpg", "jpeg"), "JPEG"),
        (("png",), "PNG"),
        (("gif",), "GIF"),
        (("webp",), "WEBP"),
    )
    orientations: tuple[tuple[tuple[str, ...], str], ...] = (
        (("landscape", "wide"), Orientation.LANDSCAPE.value),
        (("portrait", "tall"), Orientation.PORTRAIT.value),
        (("square",), Orientation.SQUARE.value),
        (("panoramic", "panorama"), Orientation.PANORAMIC.value),
    )
    content_categories: tuple[tuple[tuple[str, ...], str], ...] = (
        (("nature", "landscape", "outdoor"), "NATURE"),
        (("people", "person", "portrait"), "PEOPLE"),
        (("architecture", "building", "structure"), "ARCHITECTURE"),
        (("art", "artistic", "creative"), "ART"),
        (("technology", "tech", "digital"), "TECHNOLOGY"),
    )

    def all_color_terms(self) -> tuple[str, ...]:
        return tuple(term for terms in self.color_families.values() for term in terms)


DEFAULT_KEYWORD_TABLES = KeywordTables()


__all__ = ["KeywordTables", "DEFAULT_KEYWORD_TABLES"]
