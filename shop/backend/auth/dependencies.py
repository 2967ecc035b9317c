# -*- coding: utf-8 -*-
"""
FastAPI зависимости для авторизации.

Предоставляет зависимости для:
- Получения текущего пользователя из JWT токена
- Опционального получения пользователя (публичные эндпоинты)
- Проверки прав администратора
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from shop.backend.auth.jwt import verify_token
from src.core.config import Settings, get_settings
from src.db.models import User
from src.db.session import get_db_session
from src.services.users import UserService

logger = logging.getLogger(__name__)

# Схема авторизации Bearer token
oauth2_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Получает текущего пользователя из JWT токена.

    Извлекает токен из заголовка Authorization: Bearer <token>,
    проверяет его и загружает пользователя из БД.

    Raises:
        HTTPException 401: Токен отсутствует, невалиден, истёк,
            или пользователь из токена больше не существует
    """
    if credentials is None:
        raise _unauthorized("Не авторизован, токен отсутствует")

    token_data = verify_token(credentials.credentials, settings)
    if token_data is None:
        raise _unauthorized("Не авторизован, неверный или истёкший токен")

    if token_data.get("type") != "access":
        raise _unauthorized("Неверный тип токена")

    try:
        user_id = int(token_data.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Невалидный ID пользователя в токене")

    user = await UserService(db).get_by_id(user_id)
    if user is None:
        logger.warning(f"Пользователь с ID {user_id} из токена не найден в БД")
        raise _unauthorized("Не авторизован, пользователь не найден")

    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> Optional[User]:
    """
    Опционально получает пользователя.

    Не выбрасывает исключение если токена нет или он невалиден.
    """
    if credentials is None:
        return None
    try:
        return await get_current_user(credentials, db, settings)
    except HTTPException:
        return None


def ensure_admin(user: User) -> User:
    """Проверяет флаг администратора у уже аутентифицированного пользователя."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Доступ запрещен: требуются права администратора.",
        )
    return user


async def require_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Проверяет, что текущий пользователь является администратором.

    Raises:
        HTTPException 403: Если пользователь не админ
    """
    return ensure_admin(current_user)
