"""Утилиты для настройки логирования приложения."""
from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Настроить логирование в консоль и, если задан файл, в файл.

    Пустое значение ``IMAGESEARCH_LOG_FILE`` отключает файловый лог.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    level_name = (level or os.getenv("IMAGESEARCH_LOG_LEVEL", "INFO")).upper()
    resolved_level = getattr(logging, level_name, logging.INFO)
    target = log_file if log_file is not None else os.getenv("IMAGESEARCH_LOG_FILE", "imagesearch.log")

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if target:
        log_path = Path(target)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    root_logger.setLevel(resolved_level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    # urllib3 пишет каждое соединение на DEBUG
    logging.getLogger("urllib3").setLevel(max(resolved_level, logging.WARNING))


__all__ = ["setup_logging", "LOG_FORMAT"]
