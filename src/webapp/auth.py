"""
Утилиты для валидации запросов Telegram WebApp согласно официальной спецификации.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import parse_qsl


class WebAppAuthError(Exception):
    """
    Исключение при некорректных подписи или структуре initData.
    """


@dataclass(frozen=True)
class WebAppUserContext:
    """
    Пользователь Telegram, извлечённый из проверенного initData.
    """

    telegram_id: int
    first_name: str
    last_name: str
    username: str
    raw: Dict[str, Any]


def build_check_string(data: Dict[str, str]) -> str:
    """
    Формирует строку для вычисления подписи: пары key=value,
    отсортированные по ключу и разделённые переводом строки.
    """
    pairs = [f"{key}={value}" for key, value in sorted(data.items())]
    return "\n".join(pairs)


def sign_init_data(data: Dict[str, str], bot_token: str) -> str:
    """
    Вычисляет hash для набора полей initData.

    secret = HMAC_SHA256(key="WebAppData", msg=bot_token)
    hash = hex(HMAC_SHA256(key=secret, msg=data_check_string))
    """
    secret_key = hmac.new(b"WebAppData", bot_token.encode("utf-8"), hashlib.sha256).digest()
    return hmac.new(secret_key, build_check_string(data).encode("utf-8"), hashlib.sha256).hexdigest()


def validate_init_data(init_data: str, bot_token: str, max_age_seconds: int = 0) -> WebAppUserContext:
    """
    Валидирует initData из Telegram WebApp и возвращает контекст пользователя.

    max_age_seconds > 0 включает проверку свежести auth_date.
    """
    if not init_data:
        raise WebAppAuthError("initData отсутствует")

    try:
        items = dict(parse_qsl(init_data, keep_blank_values=True, strict_parsing=True))
    except ValueError as exc:
        raise WebAppAuthError("initData повреждена") from exc

    received_hash = items.pop("hash", None)
    if not received_hash:
        raise WebAppAuthError("hash отсутствует в initData")

    expected_hash = sign_init_data(items, bot_token)
    if not hmac.compare_digest(received_hash, expected_hash):
        raise WebAppAuthError("подпись initData невалидна")

    if max_age_seconds > 0:
        auth_date_raw = items.get("auth_date")
        try:
            auth_date = int(auth_date_raw or "")
        except ValueError as exc:
            raise WebAppAuthError("auth_date повреждена") from exc

        if time.time() - auth_date > max_age_seconds:
            raise WebAppAuthError("initData устарела, попросите пользователя открыть мини-приложение заново")

    user_payload = items.get("user")
    if not user_payload:
        raise WebAppAuthError("данные пользователя отсутствуют в initData")

    try:
        user_dict = json.loads(user_payload)
        telegram_id = int(user_dict["id"])
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        raise WebAppAuthError("не удалось разобрать user из initData") from exc

    return WebAppUserContext(
        telegram_id=telegram_id,
        first_name=user_dict.get("first_name") or "",
        last_name=user_dict.get("last_name") or "",
        username=user_dict.get("username") or "",
        raw=user_dict,
    )
