# tests/test_telegram_auth.py
import time
from datetime import timedelta
from urllib.parse import parse_qsl, urlencode

import pytest

from shop.backend.auth.jwt import create_access_token, verify_token
from src.db.models import User
from src.services.users import UserService
from src.webapp.auth import (
    WebAppAuthError,
    WebAppUserContext,
    sign_init_data,
    validate_init_data,
)

BOT_TOKEN = "123456:TEST-BOT-TOKEN"


def _ctx(telegram_id: int, first_name: str = "Иван", username: str = "ivan") -> WebAppUserContext:
    return WebAppUserContext(
        telegram_id=telegram_id,
        first_name=first_name,
        last_name="",
        username=username,
        raw={"id": telegram_id},
    )


# --- initData ---

def test_valid_init_data_returns_user(make_init_data):
    init_data = make_init_data({"id": 2000, "first_name": "Иван", "last_name": "Петров", "username": "ivan"})

    ctx = validate_init_data(init_data, BOT_TOKEN)

    assert ctx.telegram_id == 2000
    assert ctx.first_name == "Иван"
    assert ctx.last_name == "Петров"
    assert ctx.username == "ivan"


def test_missing_names_default_to_empty(make_init_data):
    ctx = validate_init_data(make_init_data({"id": 2000}), BOT_TOKEN)
    assert (ctx.first_name, ctx.last_name, ctx.username) == ("", "", "")


def test_tampered_field_is_rejected(make_init_data):
    fields = dict(parse_qsl(make_init_data({"id": 2000, "first_name": "Иван"})))
    fields["user"] = fields["user"].replace("2000", "1000")

    with pytest.raises(WebAppAuthError):
        validate_init_data(urlencode(fields), BOT_TOKEN)


def test_foreign_bot_signature_is_rejected(make_init_data):
    init_data = make_init_data({"id": 2000}, bot_token="999:OTHER-BOT")
    with pytest.raises(WebAppAuthError):
        validate_init_data(init_data, BOT_TOKEN)


@pytest.mark.parametrize("init_data", ["", "user=%7B%22id%22%3A1%7D&auth_date=1"])
def test_empty_or_unsigned_init_data(init_data):
    with pytest.raises(WebAppAuthError):
        validate_init_data(init_data, BOT_TOKEN)


def test_auth_date_age_check(make_init_data):
    stale = make_init_data({"id": 2000}, auth_date=int(time.time()) - 7200)

    with pytest.raises(WebAppAuthError):
        validate_init_data(stale, BOT_TOKEN, max_age_seconds=3600)

    # Без ограничения возраста старые данные принимаются
    assert validate_init_data(stale, BOT_TOKEN).telegram_id == 2000

    fresh = make_init_data({"id": 2000})
    assert validate_init_data(fresh, BOT_TOKEN, max_age_seconds=3600).telegram_id == 2000


def test_signed_init_data_without_valid_user():
    fields = {"auth_date": str(int(time.time())), "query_id": "AAH"}
    fields["hash"] = sign_init_data(fields, BOT_TOKEN)
    with pytest.raises(WebAppAuthError):
        validate_init_data(urlencode(fields), BOT_TOKEN)

    fields = {"auth_date": str(int(time.time())), "user": '{"first_name":"Без ID"}'}
    fields["hash"] = sign_init_data(fields, BOT_TOKEN)
    with pytest.raises(WebAppAuthError):
        validate_init_data(urlencode(fields), BOT_TOKEN)


# --- Пользователи ---

async def test_upsert_creates_new_user(session):
    user, is_new = await UserService(session).upsert_from_telegram(_ctx(2000), admin_telegram_id=1000)

    assert is_new is True
    assert user.id is not None
    assert user.telegram_id == 2000
    assert user.is_admin is False


async def test_upsert_grants_admin_by_telegram_id(session):
    user, _ = await UserService(session).upsert_from_telegram(_ctx(1000, "Админ", "boss"), admin_telegram_id=1000)
    assert user.is_admin is True


async def test_upsert_existing_user_syncs_profile(session, customer):
    service = UserService(session)

    same, is_new = await service.upsert_from_telegram(_ctx(2000), admin_telegram_id=1000)
    assert is_new is False
    assert same.id == customer.id

    renamed, is_new = await service.upsert_from_telegram(_ctx(2000, "Ваня", "vanya"), admin_telegram_id=2000)
    assert is_new is False
    assert renamed.id == customer.id
    assert renamed.first_name == "Ваня"
    assert renamed.username == "vanya"
    assert renamed.is_admin is True

    assert (await service.get_by_telegram_id(2000)).username == "vanya"
    assert await service.get_by_telegram_id(4242) is None


# --- JWT ---

def test_token_roundtrip(settings):
    user = User(id=7, telegram_id=2000, is_admin=True)
    payload = verify_token(create_access_token(user, settings), settings)

    assert payload["sub"] == "7"
    assert payload["is_admin"] is True
    assert payload["type"] == "access"


def test_token_with_wrong_secret_or_expired(settings):
    user = User(id=7, telegram_id=2000, is_admin=False)

    foreign = settings.model_copy(update={"JWT_SECRET": "another-secret"})
    assert verify_token(create_access_token(user, foreign), settings) is None

    expired = create_access_token(user, settings, expires_delta=timedelta(seconds=-30))
    assert verify_token(expired, settings) is None

    assert verify_token("not-a-jwt", settings) is None
