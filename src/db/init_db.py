"""
Утилита для инициализации базы данных.
Создаёт все таблицы согласно моделям SQLAlchemy.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from src.db.base import Base
from src.db.session import async_engine

logger = logging.getLogger(__name__)


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """
    Проверяет подключение и создаёт все таблицы согласно моделям.

    Таблицы создаются только если их ещё нет (create_all).
    """
    engine = engine or async_engine
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("✅ Подключение к БД успешно")

            await conn.run_sync(Base.metadata.create_all)
            logger.info(f"✅ Таблицы созданы успешно: {', '.join(sorted(Base.metadata.tables))}")

    except Exception as e:
        logger.error(f"❌ Ошибка при инициализации БД: {e}")
        raise


if __name__ == "__main__":
    """
    Запуск инициализации БД из командной строки.

    Использование:
        python -m src.db.init_db
    """
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_db())
