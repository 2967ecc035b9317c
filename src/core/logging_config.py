"""
Единая настройка логирования для API магазина.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

from src.core.config import Settings


class SuppressWatchFilesFilter(logging.Filter):
    """
    Фильтр удаляет шумные сообщения вида «1 change detected»,
    которые возникают при работе uvicorn --reload.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        message = record.getMessage().lower()
        return "change detected" not in message


def build_logging_config(settings: Settings) -> dict:
    """Собирает словарь для logging.config.dictConfig."""
    level = settings.LOG_LEVEL.upper()

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "suppress_watchfiles": {
                "()": "src.core.logging_config.SuppressWatchFilesFilter",
            },
        },
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "standard",
                "filters": ["suppress_watchfiles"],
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "DEBUG",
                "formatter": "standard",
                "filename": settings.LOG_FILE,
                "maxBytes": settings.LOG_MAX_SIZE_MB * 1024 * 1024,
                "backupCount": settings.LOG_BACKUP_COUNT,
                "encoding": "utf-8",
                "delay": True,
                "filters": ["suppress_watchfiles"],
            },
        },
        "root": {
            "handlers": ["console", "file"],
            "level": level,
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["console", "file"],
                "level": level,
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": ["console", "file"],
                "level": level,
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["console", "file"],
                "level": level,
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "handlers": ["file"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """Настраивает логирование: консоль + файл с ротацией."""
    Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(settings))
