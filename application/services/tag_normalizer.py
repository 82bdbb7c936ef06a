"""Cleaning, deduplication and relevance scoring for free-text image tags."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

logger = logging.getLogger(__name__)

TAG_DELIMITER_PATTERN = re.compile(r"[,;\s]+")
TAG_CLEANUP_PATTERN = re.compile(r"[^\w\u4e00-\u9fff\-]")

MAX_TAG_LENGTH = 50
MAX_TAGS_COUNT = 20

EXACT_MATCH_SCORE = 1.0
PARTIAL_MATCH_SCORE = 0.6
FUZZY_MATCH_SCORE = 0.4
FUZZY_THRESHOLD = 0.7


@dataclass(slots=True)
class TagValidation:
    valid: bool = True
    messages: list[str] = field(default_factory=list)
    processed_tags: list[str] = field(default_factory=list)


class TagNormalizer:
    """Turns delimiter-separated tag strings into clean tag lists."""

    def __init__(self, max_tag_length: int = MAX_TAG_LENGTH, max_tags: int = MAX_TAGS_COUNT) -> None:
        self._max_tag_length = max_tag_length
        self._max_tags = max_tags

    def normalize(self, raw: str | None) -> list[str]:
        """Split, clean, lowercase and deduplicate tags preserving first-seen order."""
        if raw is None or not raw.strip():
            return []

        tags: list[str] = []
        for part in TAG_DELIMITER_PATTERN.split(raw):
            tag = self._clean(part)
            if not tag or tag in tags:
                continue
            tags.append(tag)
            if len(tags) >= self._max_tags:
                break
        logger.debug("Normalized %d tags from %r", len(tags), raw)
        return tags

    def relevance(self, tags: Iterable[str], query: str | None) -> float:
        """Score how well ``tags`` cover ``query`` in ``[0, 1]``."""
        tag_list = [tag.lower() for tag in tags if tag]
        if not tag_list or query is None or not query.strip():
            return 0.0

        query_terms = _split_terms(query.lower().strip())
        if not query_terms:
            return 0.0

        total = 0.0
        for tag in tag_list:
            if tag in query_terms:
                total += EXACT_MATCH_SCORE
                continue
            if any(tag in term or term in tag for term in query_terms):
                total += PARTIAL_MATCH_SCORE
            if any(string_similarity(tag, term) > FUZZY_THRESHOLD for term in query_terms):
                total += FUZZY_MATCH_SCORE

        return min(total / max(len(tag_list), len(query_terms)), 1.0)

    @staticmethod
    def format_tags(tags: Iterable[str], delimiter: str = ", ") -> str:
        return delimiter.join(tags)

    def for_prompt(self, raw: str | None) -> str:
        tags = self.normalize(raw)
        return self.format_tags(tags) if tags else "No tags"

    def validate(self, raw: str | None) -> TagValidation:
        result = TagValidation()
        if raw is None or not raw.strip():
            result.messages.append("No tags provided")
            return result

        candidates = [part.strip() for part in TAG_DELIMITER_PATTERN.split(raw) if part.strip()]
        distinct = {candidate.lower() for candidate in candidates}
        if len(distinct) > self._max_tags:
            result.valid = False
            result.messages.append(f"Too many tags. Maximum allowed: {self._max_tags}")
        for candidate in candidates:
            if len(candidate) > self._max_tag_length:
                result.valid = False
                result.messages.append(
                    f"Tag too long: '{candidate}'. Maximum length: {self._max_tag_length}"
                )
        if result.valid:
            result.messages.append("Tags validation passed")
        result.processed_tags = self.normalize(raw)
        return result

    @staticmethod
    def suggest(existing: Iterable[str], query: str | None, limit: int = 10) -> list[str]:
        """Suggest known tags containing ``query``; exact matches first, then shorter tags."""
        tags = list(dict.fromkeys(existing))
        if query is None or not query.strip():
            return tags[:limit]

        needle = query.lower().strip()
        matches = [tag for tag in tags if needle in tag.lower()]
        matches.sort(key=lambda tag: (tag.lower() != needle, len(tag)))
        return matches[:limit]

    def _clean(self, tag: str) -> str:
        cleaned = TAG_CLEANUP_PATTERN.sub("", tag.strip()).lower()
        return cleaned[: self._max_tag_length]


def _split_terms(text: str) -> list[str]:
    return [term for term in TAG_DELIMITER_PATTERN.split(text) if term]


def levenshtein_distance(first: str, second: str) -> int:
    previous = list(range(len(second) + 1))
    for i, left in enumerate(first, start=1):
        current = [i]
        for j, right in enumerate(second, start=1):
            cost = 0 if left == right else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def string_similarity(first: str, second: str) -> float:
    """Edit-distance similarity normalised by the longer string."""
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(first, second) / longest


__all__ = [
    "TagNormalizer",
    "TagValidation",
    "levenshtein_distance",
    "string_similarity",
    "MAX_TAG_LENGTH",
    "MAX_TAGS_COUNT",
]
