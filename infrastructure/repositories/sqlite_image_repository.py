"""SQLite-репозиторий для хранения метаданных изображений."""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import fields
from datetime import datetime
from pathlib import Path
from typing import Any

from domain.entities import RESOLUTION_ORDER, ImageRecord, SearchCriteria
from domain.errors import CandidateSourceError
from domain.interfaces import ImageRepository
from infrastructure.repositories.in_memory_image_repository import KEYWORD_FIELDS, PHRASE_FIELDS

logger = logging.getLogger(__name__)

_COLUMN_TYPES: dict[str, str] = {
    "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
    "file_size": "INTEGER",
    "width": "INTEGER",
    "height": "INTEGER",
    "iso_speed": "INTEGER",
    "view_count": "INTEGER",
    "has_transparency": "INTEGER",
    "is_animated": "INTEGER",
    "brightness_level": "REAL",
    "contrast_level": "REAL",
    "saturation_level": "REAL",
    "visual_complexity": "REAL",
    "focal_length": "REAL",
    "gps_latitude": "REAL",
    "gps_longitude": "REAL",
}
_BOOLEAN_COLUMNS = {"has_transparency", "is_animated"}
COLUMNS: tuple[str, ...] = tuple(item.name for item in fields(ImageRecord))


class SqliteImageRepository(ImageRepository):
    """Хранит записи изображений в лёгкой SQLite-базе и фильтрует их SQL-запросом."""

    def __init__(self, db_path: str | Path = "imagesearch.db") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        # встроенный LOWER() понимает только ASCII
        conn.create_function("py_lower", 1, _unicode_lower, deterministic=True)
        return conn

    def _ensure_schema(self) -> None:
        definitions = ",\n".join(f"{name} {_COLUMN_TYPES.get(name, 'TEXT')}" for name in COLUMNS)
        with self._connect() as conn:
            conn.execute(f"CREATE TABLE IF NOT EXISTS images (\n{definitions}\n)")
            existing = {row[1] for row in conn.execute("PRAGMA table_info(images)").fetchall()}
            for name in COLUMNS:
                if name not in existing:
                    conn.execute(f"ALTER TABLE images ADD COLUMN {name} {_COLUMN_TYPES.get(name, 'TEXT')}")

    def add(self, image: ImageRecord) -> int:
        values = _to_row(image)
        names = [name for name in COLUMNS if name != "id" or image.id]
        placeholders = ", ".join("?" for _ in names)
        with self._connect() as conn:
            cursor = conn.execute(
                f"REPLACE INTO images ({', '.join(names)}) VALUES ({placeholders})",
                [values[name] for name in names],
            )
            if not image.id:
                image.id = int(cursor.lastrowid)
        return image.id

    def get(self, image_id: int) -> ImageRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {', '.join(COLUMNS)} FROM images WHERE id = ?",
                (image_id,),
            ).fetchone()
        return _from_row(row) if row is not None else None

    def list(self) -> list[ImageRecord]:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT {', '.join(COLUMNS)} FROM images ORDER BY id").fetchall()
        return [_from_row(row) for row in rows]

    def all_tags(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT tags FROM images WHERE tags IS NOT NULL AND tags != '' GROUP BY tags ORDER BY MIN(id)"
            ).fetchall()
        return [row[0] for row in rows]

    def fetch_candidates(self, criteria: SearchCriteria, limit: int = 1000) -> list[ImageRecord]:
        clauses, params = build_where(criteria)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        sql = f"SELECT {', '.join(COLUMNS)} FROM images {where} ORDER BY id LIMIT ?"
        logger.debug("Candidate query: %s %s", sql, params)
        try:
            with self._connect() as conn:
                rows = conn.execute(sql, [*params, limit]).fetchall()
        except sqlite3.Error as exc:
            raise CandidateSourceError(f"Failed to load candidates from {self._db_path}: {exc}") from exc
        return [_from_row(row) for row in rows]


def build_where(criteria: SearchCriteria) -> tuple[list[str], list[Any]]:
    """Translate criteria filters into ANDed SQL clauses with ORed value lists.

    Text needles are matched as literal substrings, so ``%`` and ``_`` carry no
    wildcard meaning.
    """
    clauses: list[str] = []
    params: list[Any] = []

    def any_contains(columns: tuple[str, ...], needles: tuple[str, ...] | frozenset[str]) -> None:
        parts: list[str] = []
        for needle in needles:
            for column in columns:
                parts.append(f"instr(py_lower({column}), ?) > 0")
                params.append(needle.lower())
        clauses.append("(" + " OR ".join(parts) + ")")

    def bounded(column: str, lower: Any, upper: Any) -> None:
        if lower is not None:
            clauses.append(f"{column} >= ?")
            params.append(lower)
        if upper is not None:
            clauses.append(f"{column} <= ?")
            params.append(upper)

    if criteria.keywords:
        any_contains(KEYWORD_FIELDS, criteria.keywords)
    if criteria.phrases:
        any_contains(PHRASE_FIELDS, criteria.phrases)

    technical = criteria.technical_filters
    if technical.file_formats:
        formats = sorted(value.upper() for value in technical.file_formats)
        clauses.append(f"UPPER(file_format) IN ({', '.join('?' for _ in formats)})")
        params.extend(formats)
    allowed = _allowed_resolutions(technical.min_resolution_category, technical.max_resolution_category)
    if allowed is not None:
        clauses.append(f"UPPER(resolution_category) IN ({', '.join('?' for _ in allowed)})")
        params.extend(allowed)
    bounded("file_size", technical.min_file_size, technical.max_file_size)
    if technical.has_transparency is not None:
        clauses.append("has_transparency = ?")
        params.append(int(technical.has_transparency))
    if technical.is_animated is not None:
        clauses.append("is_animated = ?")
        params.append(int(technical.is_animated))

    visual = criteria.visual_filters
    if visual.orientation is not None:
        clauses.append("UPPER(orientation) = ?")
        params.append(visual.orientation.upper())
    bounded("brightness_level", visual.min_brightness, visual.max_brightness)
    bounded("contrast_level", visual.min_contrast, visual.max_contrast)
    bounded("saturation_level", visual.min_saturation, visual.max_saturation)
    if visual.dominant_colors:
        any_contains(("dominant_colors",), tuple(sorted(visual.dominant_colors)))

    content = criteria.content_filters
    if content.content_categories:
        categories = sorted(content.content_categories)
        clauses.append(f"UPPER(content_category) IN ({', '.join('?' for _ in categories)})")
        params.extend(categories)
    bounded("visual_complexity", content.min_complexity, content.max_complexity)

    return clauses, params


def _unicode_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def _allowed_resolutions(lower: str | None, upper: str | None) -> list[str] | None:
    if lower is None and upper is None:
        return None
    min_rank = RESOLUTION_ORDER.get(lower.upper(), 1) if lower else 1
    max_rank = RESOLUTION_ORDER.get(upper.upper(), len(RESOLUTION_ORDER)) if upper else len(RESOLUTION_ORDER)
    return [name for name, rank in RESOLUTION_ORDER.items() if min_rank <= rank <= max_rank]


def _to_row(image: ImageRecord) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for name in COLUMNS:
        value = getattr(image, name)
        if isinstance(value, datetime):
            value = value.isoformat()
        elif name in _BOOLEAN_COLUMNS and value is not None:
            value = int(value)
        row[name] = value
    return row


def _from_row(row: tuple) -> ImageRecord:
    values = dict(zip(COLUMNS, row))
    if values["created_at"]:
        values["created_at"] = datetime.fromisoformat(values["created_at"])
    for name in _BOOLEAN_COLUMNS:
        if values[name] is not None:
            values[name] = bool(values[name])
    return ImageRecord(**values)


__all__ = ["SqliteImageRepository", "build_where"]
