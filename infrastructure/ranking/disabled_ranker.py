"""Ranker used when no external model is configured."""
from __future__ import annotations

from typing import Sequence

from domain.entities import ImageRecord, RankingOutcome
from domain.interfaces import RelevanceRanker


class DisabledRanker(RelevanceRanker):
    """Always defers to heuristic scoring."""

    def __init__(self, reason: str = "ranker not configured") -> None:
        self._reason = reason

    @property
    def enabled(self) -> bool:
        return False

    def rank(self, query: str, candidates: Sequence[ImageRecord]) -> RankingOutcome:  # pragma: no cover - trivial
        return RankingOutcome.unavailable(self._reason)


__all__ = ["DisabledRanker"]
