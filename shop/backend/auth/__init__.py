# -*- coding: utf-8 -*-
"""
Модуль аутентификации API магазина.

Содержит:
- jwt: Генерация и валидация JWT токенов
- dependencies: FastAPI зависимости для авторизации

Проверка initData Telegram WebApp находится в src.webapp.auth.
"""

from shop.backend.auth.jwt import create_access_token, verify_token
from shop.backend.auth.dependencies import (
    ensure_admin,
    get_current_user,
    get_optional_user,
    require_admin,
)

__all__ = [
    # JWT
    "create_access_token",
    "verify_token",
    # Dependencies
    "ensure_admin",
    "get_current_user",
    "get_optional_user",
    "require_admin",
]
