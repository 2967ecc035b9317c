# -*- coding: utf-8 -*-
"""
Pydantic схемы для аутентификации через Telegram WebApp.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from shop.backend.models.base import CamelModel


# ==================== Запросы ====================

class TelegramAuthRequest(CamelModel):
    """Запрос на вход: строка initData из Telegram.WebApp."""
    init_data: Optional[str] = Field(None, description="Подписанная строка initData")


# ==================== Ответы ====================

class UserResponse(CamelModel):
    """Данные пользователя магазина."""
    id: int = Field(..., description="ID пользователя в магазине")
    telegram_id: int = Field(..., description="Telegram ID")
    first_name: str = Field("", description="Имя")
    last_name: str = Field("", description="Фамилия")
    username: str = Field("", description="Username")
    is_admin: bool = Field(False, description="Администратор магазина")
    created_at: Optional[datetime] = Field(None, description="Дата регистрации")


class AuthResponse(CamelModel):
    """Ответ на успешный вход."""
    token: str = Field(..., description="JWT access token")
    user: UserResponse = Field(..., description="Пользователь")
    is_new_user: bool = Field(..., description="Пользователь создан при этом входе")
