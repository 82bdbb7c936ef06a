"""FastAPI layer that exposes image ingest and relevance search."""
from __future__ import annotations

import logging
import time
from datetime import datetime
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Query as FastAPIQuery
from pydantic import BaseModel

from application.services.tag_normalizer import TagNormalizer
from application.use_cases.ingest_images import ingest_images
from application.use_cases.search import search
from domain.entities import ImageRecord, ScoredResult
from domain.errors import CandidateSourceError, InvalidImageRecord, InvalidSearchRequest
from infrastructure.config import Container, build_default_container
from infrastructure.ranking.llm_ranker import LLMRelevanceRanker
from ui.logging_utils import setup_logging

logger = logging.getLogger(__name__)

app = FastAPI(title="Image Relevance Search API")


@lru_cache(maxsize=1)
def get_container() -> Container:
    setup_logging()
    return build_default_container()


class ImagePayload(BaseModel):
    id: int | None = None
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

    def to_record(self) -> ImageRecord:
        values = self.model_dump()
        values["id"] = values["id"] or 0
        return ImageRecord(**values)

    @classmethod
    def from_record(cls, image: ImageRecord) -> ImagePayload:
        return cls(**{name: getattr(image, name) for name in cls.model_fields})


class IngestRequest(BaseModel):
    images: list[ImagePayload]


class IngestResponse(BaseModel):
    ingested: int
    ids: list[int]


class SearchResultPayload(BaseModel):
    image: ImagePayload
    total_score: float
    description_score: float
    tag_score: float
    filename_score: float
    metadata_score: float
    bonus_score: float
    penalty_score: float
    confidence_level: str
    explanation: str

    @classmethod
    def from_result(cls, result: ScoredResult) -> SearchResultPayload:
        return cls(
            image=ImagePayload.from_record(result.image),
            total_score=result.total_score,
            description_score=result.description_score,
            tag_score=result.tag_score,
            filename_score=result.filename_score,
            metadata_score=result.metadata_score,
            bonus_score=result.bonus_score,
            penalty_score=result.penalty_score,
            confidence_level=result.confidence_level,
            explanation=result.explanation,
        )


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResultPayload]
    total_results: int
    current_page: int
    page_size: int
    total_pages: int
    strategy_description: str
    ranker_used: bool
    query_type: str | None = None
    insights: dict = {}


class RankerHealthResponse(BaseModel):
    status: str
    enabled: bool
    response_time_ms: float


@app.get("/search", response_model=SearchResponse)
def search_endpoint(
    q: str = FastAPIQuery("", description="User query"),
    page: int = 1,
    page_size: int = 20,
    file_formats: str | None = FastAPIQuery(None, description="Comma-separated formats, e.g. PNG,JPEG"),
    orientation: str | None = None,
    min_score: float | None = None,
    container: Container = Depends(get_container),
) -> SearchResponse:
    formats = [value for value in file_formats.split(",") if value.strip()] if file_formats else None
    try:
        paged = search(
            q,
            page,
            page_size,
            candidate_source=container.repository,
            ranker=container.ranker,
            analyzer=container.analyzer,
            scorer=container.scorer,
            assembler=container.assembler,
            file_formats=formats,
            orientation=orientation,
            min_score=min_score,
            candidate_limit=container.candidate_limit,
        )
    except InvalidSearchRequest as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except CandidateSourceError as exc:
        logger.exception("Search failed for query %r", q)
        raise HTTPException(status_code=503, detail="Image metadata store is unavailable") from exc

    return SearchResponse(
        query=q,
        results=[SearchResultPayload.from_result(result) for result in paged.results],
        total_results=paged.total_results,
        current_page=paged.current_page,
        page_size=paged.page_size,
        total_pages=paged.total_pages,
        strategy_description=paged.strategy_description,
        ranker_used=paged.ranker_used,
        query_type=paged.query_type.value if paged.query_type else None,
        insights=paged.insights,
    )


@app.post("/images", response_model=IngestResponse)
def ingest_endpoint(payload: IngestRequest, container: Container = Depends(get_container)) -> IngestResponse:
    try:
        stored = ingest_images(
            [image.to_record() for image in payload.images],
            repository=container.repository,
            tag_normalizer=container.tag_normalizer,
        )
    except InvalidImageRecord as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return IngestResponse(ingested=len(stored), ids=[image.id for image in stored])


@app.get("/images/{image_id}", response_model=ImagePayload)
def image_endpoint(image_id: int, container: Container = Depends(get_container)) -> ImagePayload:
    image = container.repository.get(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail=f"Image {image_id} not found")
    return ImagePayload.from_record(image)


@app.get("/tags/suggest", response_model=list[str])
def suggest_tags_endpoint(
    q: str = "",
    limit: int = 10,
    container: Container = Depends(get_container),
) -> list[str]:
    known: list[str] = []
    for raw in container.repository.all_tags():
        known.extend(container.tag_normalizer.normalize(raw))
    return TagNormalizer.suggest(known, q, limit)


@app.get("/ranker/health", response_model=RankerHealthResponse)
def ranker_health_endpoint(container: Container = Depends(get_container)) -> RankerHealthResponse:
    started = time.perf_counter()
    ranker = container.ranker
    healthy = isinstance(ranker, LLMRelevanceRanker) and ranker.health_check()
    elapsed = (time.perf_counter() - started) * 1000
    if not ranker.enabled:
        status = "DISABLED"
    else:
        status = "UP" if healthy else "DOWN"
    return RankerHealthResponse(status=status, enabled=ranker.enabled, response_time_ms=elapsed)
