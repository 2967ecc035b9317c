"""Пользователи магазина, создаваемые по входу через Telegram."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import User
from src.webapp.auth import WebAppUserContext

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_telegram_id(self, telegram_id: int) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.telegram_id == telegram_id))
        return result.scalar_one_or_none()

    async def upsert_from_telegram(
        self,
        ctx: WebAppUserContext,
        admin_telegram_id: Optional[int],
    ) -> tuple[User, bool]:
        """
        Находит пользователя по Telegram ID или создаёт нового.

        Имя, фамилия и username синхронизируются с Telegram, флаг
        администратора пересчитывается по ADMIN_TELEGRAM_ID.

        Returns:
            (пользователь, создан ли он сейчас)
        """
        should_be_admin = admin_telegram_id is not None and ctx.telegram_id == admin_telegram_id
        user = await self.get_by_telegram_id(ctx.telegram_id)

        if user is None:
            user = User(
                telegram_id=ctx.telegram_id,
                first_name=ctx.first_name,
                last_name=ctx.last_name,
                username=ctx.username,
                is_admin=should_be_admin,
            )
            self.session.add(user)
            await self.session.commit()
            logger.info(f"Создан пользователь с TG ID: {ctx.telegram_id}, isAdmin: {should_be_admin}")
            return user, True

        changes = {
            "first_name": ctx.first_name,
            "last_name": ctx.last_name,
            "username": ctx.username,
            "is_admin": should_be_admin,
        }
        changed = False
        for field_name, value in changes.items():
            if getattr(user, field_name) != value:
                setattr(user, field_name, value)
                changed = True

        if changed:
            await self.session.commit()
            logger.info(f"Обновлены данные пользователя с TG ID: {ctx.telegram_id}")

        return user, False
