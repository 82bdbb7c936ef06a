"""Abstract interfaces for the image search system."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from domain.entities import ImageRecord, RankingOutcome, SearchCriteria


class CandidateSource(ABC):
    """Narrows the stored images to the ones matching a query's filters."""

    @abstractmethod
    def fetch_candidates(self, criteria: SearchCriteria, limit: int = 1000) -> list[ImageRecord]:
        """Return at most ``limit`` records satisfying the criteria filters."""


class ImageRepository(CandidateSource):
    """Persists image metadata records."""

    @abstractmethod
    def add(self, image: ImageRecord) -> int:
        """Store a record and return its id."""

    @abstractmethod
    def get(self, image_id: int) -> ImageRecord | None:
        """Retrieve a record by id."""

    @abstractmethod
    def list(self) -> list[ImageRecord]:
        """Return all stored records."""

    def all_tags(self) -> list[str]:
        """Return the distinct raw tag strings known to the repository."""
        tags: list[str] = []
        for image in self.list():
            if image.tags and image.tags not in tags:
                tags.append(image.tags)
        return tags


class RelevanceRanker(ABC):
    """Optionally orders candidates with an external model."""

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Whether the ranker will attempt a call at all."""

    @abstractmethod
    def rank(self, query: str, candidates: Sequence[ImageRecord]) -> RankingOutcome:
        """Return the ranked candidate ids; must not raise."""


__all__ = [
    "CandidateSource",
    "ImageRepository",
    "RelevanceRanker",
]
