"""Выполнить поиск изображений по SQLite-базе метаданных из командной строки."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from application.use_cases.search import search
from domain.entities import Orientation, PagedResult
from domain.errors import ImageSearchError
from infrastructure.config import ContainerConfig, build_default_container
from ui.logging_utils import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("query", nargs="?", default="", help="Поисковый запрос")
    parser.add_argument(
        "--db",
        default="data/imagesearch.db",
        help="Путь к SQLite-базе с метаданными (по умолчанию: data/imagesearch.db)",
    )
    parser.add_argument("--page", type=int, default=1, help="Номер страницы, начиная с 1")
    parser.add_argument("--page-size", type=int, default=20, help="Размер страницы")
    parser.add_argument("--min-score", type=float, default=None, help="Минимальный итоговый балл")
    parser.add_argument(
        "--format",
        action="append",
        dest="file_formats",
        help="Ограничить форматом файла (PNG, JPEG, ...). Можно передавать несколько раз.",
    )
    parser.add_argument(
        "--orientation",
        choices=[item.value for item in Orientation],
        type=str.upper,
        help="Ограничить ориентацией изображения",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Печатать результат в JSON вместо таблицы.",
    )
    return parser.parse_args(argv)


def render_table(paged: PagedResult) -> str:
    lines = [
        f"{paged.strategy_description} | найдено: {paged.total_results}, "
        f"страница {paged.current_page}/{paged.total_pages}",
    ]
    for result in paged.results:
        name = result.image.original_name or result.image.file_name or ""
        lines.append(f"{result.image_id:>6}  {result.total_score:6.3f}  {result.confidence_level:<7}  {name}")
    return "\n".join(lines)


def render_json(paged: PagedResult) -> str:
    payload = {
        "total_results": paged.total_results,
        "current_page": paged.current_page,
        "page_size": paged.page_size,
        "total_pages": paged.total_pages,
        "strategy_description": paged.strategy_description,
        "ranker_used": paged.ranker_used,
        "insights": paged.insights,
        "results": [
            {
                "image_id": result.image_id,
                "file_name": result.image.file_name,
                "total_score": result.total_score,
                "confidence_level": result.confidence_level,
                "explanation": result.explanation,
            }
            for result in paged.results
        ],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging()

    config = ContainerConfig.from_env()
    config.repository = "sqlite"
    config.db_path = str(Path(args.db).expanduser())
    container = build_default_container(config)

    try:
        paged = search(
            args.query,
            args.page,
            args.page_size,
            candidate_source=container.repository,
            ranker=container.ranker,
            analyzer=container.analyzer,
            scorer=container.scorer,
            assembler=container.assembler,
            file_formats=args.file_formats,
            orientation=args.orientation,
            min_score=args.min_score,
            candidate_limit=container.candidate_limit,
        )
    except ImageSearchError as exc:
        print(f"Ошибка поиска: {exc}", file=sys.stderr)
        return 1

    print(render_json(paged) if args.json else render_table(paged))
    return 0


if __name__ == "__main__":
    sys.exit(main())
