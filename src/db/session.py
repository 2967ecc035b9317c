"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

import logging
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.core.config import Settings, get_settings
from .models import Base  # noqa: F401  # ensure models are imported for metadata

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> AsyncEngine:
    """Создаёт асинхронный движок по настройкам (PostgreSQL или SQLite)."""
    url = settings.database_url
    options: dict = {"echo": settings.DEBUG}

    # Для SQLite (тесты, локальный запуск) параметры пула неприменимы
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )

    return create_async_engine(url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = build_engine(get_settings())
async_session_factory = build_session_factory(async_engine)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """
    Dependency для FastAPI, возвращает сессию БД.

    Сервисы фиксируют свои изменения сами; при исключении
    незафиксированная транзакция откатывается целиком.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Ошибка в сессии БД, откат транзакции: {e}")
            await session.rollback()
            raise


async def close_db() -> None:
    """Закрытие пула соединений при остановке приложения."""
    await async_engine.dispose()
    logger.info("Подключение к базе данных закрыто")
