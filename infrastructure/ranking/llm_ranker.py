"""LLM-backed relevance ranker for image candidates."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence

import requests

from application.services.tag_normalizer import TagNormalizer
from domain.entities import ImageRecord, RankingOutcome
from domain.errors import RankerError
from domain.interfaces import RelevanceRanker

logger = logging.getLogger(__name__)

NO_MATCHES_SENTINEL = "NO_MATCHES"
PLACEHOLDER_API_KEY = "your-api-password-here"
_ID_SEPARATOR = re.compile(r"[,\s]+")
_NON_DIGIT = re.compile(r"[^0-9]")

PROMPT_TEMPLATE = """You are an intelligent image search assistant. Based on the user's search query and the available image metadata, identify the most relevant images and return their IDs in order of relevance.

User Search Query: "{query}"

{metadata}
Instructions:
1. Analyze the search query to understand what the user is looking for
2. Match the query against image names, descriptions, tags, keywords and technical properties
3. Consider semantic similarity, not just exact keyword matches
4. Return ONLY the numeric image IDs of relevant matches, separated by commas
5. Order the results by relevance (most relevant first)
6. If no images are relevant, return "{sentinel}"
7. IMPORTANT: Return ONLY numbers separated by commas, no other text or formatting

Examples:
- Good response: "2,1,3"
- Good response: "2"
- Good response: "{sentinel}"
- Bad response: "ID1,ID2,ID3"
- Bad response: "Image 2 is most relevant"

Response format: Just the numbers separated by commas, nothing else."""


@dataclass(slots=True)
class RankerSettings:
    endpoint: str = ""
    api_key: str = ""
    model: str = ""
    enabled: bool = True
    timeout: float = 30.0
    temperature: float = 0.2
    max_tokens: int = 2048
    max_candidates: int = 40

    @property
    def is_configured(self) -> bool:
        return bool(
            self.endpoint
            and self.api_key
            and self.api_key != PLACEHOLDER_API_KEY
            and self.model
        )


class LLMRelevanceRanker(RelevanceRanker):
    """Ask a chat-completions endpoint to order candidate image ids."""

    def __init__(
        self,
        settings: RankerSettings,
        tag_normalizer: TagNormalizer | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._tags = tag_normalizer or TagNormalizer()
        self._session = session

    @property
    def enabled(self) -> bool:
        return self._settings.enabled and self._settings.is_configured

    def rank(self, query: str, candidates: Sequence[ImageRecord]) -> RankingOutcome:
        if not self.enabled:
            logger.info("Relevance ranker is disabled or not configured; using heuristic scoring.")
            return RankingOutcome.unavailable("ranker disabled")
        if not candidates:
            return RankingOutcome.no_matches()

        try:
            content = self._request_ranking(query, candidates)
            outcome = self._parse_content(content, candidates)
        except RankerError as exc:
            logger.warning("Relevance ranker failed for query %r: %s", query, exc)
            return RankingOutcome.unavailable(str(exc))
        except Exception:  # pragma: no cover - best effort
            logger.exception("Relevance ranker failed unexpectedly for query %r.", query)
            return RankingOutcome.unavailable("unexpected ranker error")

        logger.info(
            "Relevance ranker returned %s with %d ids for query %r",
            outcome.status.value,
            len(outcome.image_ids),
            query,
        )
        return outcome

    def health_check(self) -> bool:
        """Send a minimal completion to check that the endpoint answers."""
        if not self.enabled:
            return False
        try:
            response = self._post(
                {
                    "model": self._settings.model,
                    "max_tokens": 10,
                    "messages": [{"role": "user", "content": "Hello"}],
                }
            )
        except RankerError as exc:
            logger.error("Relevance ranker health check failed: %s", exc)
            return False
        return response.status_code == 200

    def build_prompt(self, query: str, candidates: Sequence[ImageRecord]) -> str:
        return PROMPT_TEMPLATE.format(
            query=query,
            metadata=self.describe_candidates(candidates),
            sentinel=NO_MATCHES_SENTINEL,
        )

    def describe_candidates(self, candidates: Sequence[ImageRecord]) -> str:
        lines = ["Available Images:"]
        for image in candidates[: self._settings.max_candidates]:
            dimensions = f"{image.width}x{image.height}" if image.width and image.height else "Unknown"
            uploaded = image.created_at.isoformat(timespec="seconds") if image.created_at else "Unknown"
            lines.append(
                ", ".join(
                    [
                        f"ID: {image.id}",
                        f"Name: {image.original_name or 'Unknown'}",
                        f"File: {image.file_name or 'Unknown'}",
                        f"Format: {image.file_format or 'Unknown'}",
                        f"Dimensions: {dimensions}",
                        f"Resolution: {image.resolution_category or 'Unknown'}",
                        f"Size: {image.file_size if image.file_size is not None else 'Unknown'} bytes",
                        f"Orientation: {image.orientation or 'Unknown'}",
                        f"Brightness: {_format_level(image.brightness_level)}",
                        f"Description: {image.description or 'No description'}",
                        f"Tags: {self._tags.for_prompt(image.tags)}",
                        f"AI Tags: {self._tags.for_prompt(image.ai_generated_tags)}",
                        f"Keywords: {image.semantic_keywords or 'None'}",
                        f"Category: {image.content_category or 'Unknown'}",
                        f"Uploaded: {uploaded}",
                        f"Views: {image.view_count or 0}",
                    ]
                )
            )
        return "\n".join(lines) + "\n"

    def _request_ranking(self, query: str, candidates: Sequence[ImageRecord]) -> str:
        payload = {
            "model": self._settings.model,
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
            "messages": [{"role": "user", "content": self.build_prompt(query, candidates)}],
        }
        response = self._post(payload)
        if response.status_code != 200:
            raise RankerError(f"ranker endpoint returned status {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise RankerError("ranker response is not valid JSON") from exc
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RankerError("ranker response has no message content") from exc
        if not isinstance(content, str):
            raise RankerError("ranker message content is not text")
        return content

    def _post(self, payload: dict) -> requests.Response:
        post = self._session.post if self._session is not None else requests.post
        try:
            return post(
                self._settings.endpoint,
                headers={"Authorization": f"Bearer {self._settings.api_key}"},
                json=payload,
                timeout=self._settings.timeout,
            )
        except requests.RequestException as exc:
            raise RankerError(f"ranker request failed: {exc}") from exc

    @staticmethod
    def _parse_content(content: str, candidates: Sequence[ImageRecord]) -> RankingOutcome:
        cleaned = content.strip().strip('"').strip()
        if cleaned == NO_MATCHES_SENTINEL:
            return RankingOutcome.no_matches()

        tokens = (_NON_DIGIT.sub("", token) for token in _ID_SEPARATOR.split(cleaned))
        parsed_ids = [int(digits) for digits in tokens if digits]
        if not parsed_ids:
            raise RankerError(f"could not parse ranker content: {cleaned[:80]!r}")

        known_ids = {image.id for image in candidates}
        ranked: list[int] = []
        for image_id in parsed_ids:
            if image_id not in known_ids:
                logger.warning("Ranker returned unknown image id %s; dropping it.", image_id)
                continue
            if image_id not in ranked:
                ranked.append(image_id)
        return RankingOutcome.ranked(ranked)


def _format_level(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else "Unknown"


__all__ = ["LLMRelevanceRanker", "RankerSettings", "NO_MATCHES_SENTINEL", "PLACEHOLDER_API_KEY"]
