# -*- coding: utf-8 -*-
"""
JWT токены для аутентификации покупателей и администратора магазина.

Токен содержит внутренний ID пользователя (sub) и флаг администратора.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from src.core.config import Settings
from src.db.models import User


def create_access_token(
    user: User,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Создаёт JWT access token.

    Args:
        user: Пользователь магазина
        settings: Настройки (секрет, алгоритм, срок жизни)
        expires_delta: Время жизни токена (по умолчанию JWT_EXPIRE_DAYS)

    Returns:
        JWT access token
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.JWT_EXPIRE_DAYS))

    to_encode = {
        "sub": str(user.id),
        "is_admin": bool(user.is_admin),
        "type": "access",
        "iat": now,
        "exp": expire,
    }

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str, settings: Settings) -> Optional[dict[str, Any]]:
    """
    Проверяет подпись и срок действия токена.

    Returns:
        Декодированные данные токена или None если токен невалидный
    """
    if not settings.JWT_SECRET:
        return None
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        return None
