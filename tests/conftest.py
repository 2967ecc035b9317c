# tests/conftest.py
"""
Общие фикстуры: in-memory SQLite (aiosqlite), сессия, настройки,
тестовые пользователи и HTTP-клиент поверх ASGI приложения.
"""

import json
import os
import tempfile
import time
from urllib.parse import urlencode

# Окружение выставляется до импорта настроек и приложения
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TELEGRAM_BOT_TOKEN"] = "123456:TEST-BOT-TOKEN"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["ADMIN_TELEGRAM_ID"] = "1000"
os.environ["LOG_FILE"] = os.path.join(tempfile.gettempdir(), "shop-api-tests", "api.log")

import httpx
import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.config import Settings, get_settings
from src.db.init_db import init_db
from src.db.models import Category, Product, User
from src.db.session import build_session_factory, get_db_session
from src.webapp.auth import sign_init_data

ADMIN_TG_ID = 1000
CUSTOMER_TG_ID = 2000


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        TELEGRAM_BOT_TOKEN="123456:TEST-BOT-TOKEN",
        JWT_SECRET="test-jwt-secret",
        ADMIN_TELEGRAM_ID=str(ADMIN_TG_ID),
        PRODUCTS_PAGE_SIZE=12,
    )


@pytest.fixture
async def engine():
    # Одно соединение на весь тест: in-memory БД живёт, пока оно открыто
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


# --- Данные ---

@pytest.fixture
async def admin(session) -> User:
    user = User(telegram_id=ADMIN_TG_ID, first_name="Админ", username="shop_admin", is_admin=True)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def customer(session) -> User:
    user = User(telegram_id=CUSTOMER_TG_ID, first_name="Иван", username="ivan")
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def other_customer(session) -> User:
    user = User(telegram_id=3000, first_name="", username="petr")
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
def make_category(session):
    async def _make(name: str, parent_id=None) -> Category:
        category = Category(name=name, parent_id=parent_id)
        session.add(category)
        await session.commit()
        return category

    return _make


@pytest.fixture
def make_product(session):
    async def _make(name: str, category: Category, price: float = 100.0, stock: int = 10) -> Product:
        product = Product(name=name, category_id=category.id, price=price, stock=stock)
        session.add(product)
        await session.commit()
        return product

    return _make


# --- Telegram initData ---

@pytest.fixture
def make_init_data(settings):
    """Собирает подписанную строку initData, как её формирует Telegram."""

    def _make(user: dict, auth_date: int = None, bot_token: str = None) -> str:
        fields = {
            "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
            "user": json.dumps(user, ensure_ascii=False, separators=(",", ":")),
            "auth_date": str(auth_date if auth_date is not None else int(time.time())),
        }
        fields["hash"] = sign_init_data(fields, bot_token or settings.TELEGRAM_BOT_TOKEN)
        return urlencode(fields)

    return _make


# --- HTTP ---

@pytest.fixture
async def client(session_factory, settings):
    from shop.backend.main import app

    async def override_db_session():
        async with session_factory() as db:
            try:
                yield db
            except Exception:
                await db.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_settings] = lambda: settings

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()
