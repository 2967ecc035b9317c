# -*- coding: utf-8 -*-
"""
API роутер аутентификации.

Эндпоинты:
- POST /telegram - Вход через Telegram WebApp (initData)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shop.backend.auth.jwt import create_access_token
from shop.backend.models.auth import AuthResponse, TelegramAuthRequest, UserResponse
from src.core.config import Settings, get_settings
from src.db.session import get_db_session
from src.services.errors import AuthenticationError, ConfigurationError, ValidationError
from src.services.users import UserService
from src.webapp.auth import WebAppAuthError, validate_init_data

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/telegram", response_model=AuthResponse)
async def telegram_login(
    payload: TelegramAuthRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """
    Вход или регистрация через Telegram WebApp.

    Проверяет подпись initData, создаёт/обновляет пользователя
    и возвращает JWT токен на 7 дней.
    """
    if not payload.init_data:
        raise ValidationError("Ошибка: initData не предоставлены.")

    if not settings.TELEGRAM_BOT_TOKEN:
        logger.error("Критическая ошибка: TELEGRAM_BOT_TOKEN не задан")
        raise ConfigurationError("Ошибка конфигурации сервера: отсутствует токен бота.")
    if not settings.JWT_SECRET:
        logger.error("Критическая ошибка: JWT_SECRET не задан")
        raise ConfigurationError("Ошибка конфигурации сервера: отсутствует секрет JWT.")
    admin_telegram_id = settings.admin_telegram_id_int
    if admin_telegram_id is None:
        logger.error("Критическая ошибка: ADMIN_TELEGRAM_ID не задан или не является числом")
        raise ConfigurationError("Ошибка конфигурации сервера: некорректный ID администратора.")

    try:
        ctx = validate_init_data(
            payload.init_data,
            settings.TELEGRAM_BOT_TOKEN,
            max_age_seconds=settings.TELEGRAM_AUTH_MAX_AGE_SECONDS,
        )
    except WebAppAuthError as e:
        logger.warning(f"Попытка входа с невалидными initData: {e}")
        raise AuthenticationError("Ошибка: Невалидные данные аутентификации.")

    user, is_new_user = await UserService(db).upsert_from_telegram(ctx, admin_telegram_id)
    token = create_access_token(user, settings)

    logger.info(f"Вход пользователя {user.id} (TG ID: {user.telegram_id}, новый: {is_new_user})")

    return AuthResponse(
        token=token,
        user=UserResponse.model_validate(user),
        is_new_user=is_new_user,
    )
