"""
==============================================================================
TELEGRAM SHOP API - CONFIGURATION
==============================================================================
Управление конфигурацией через переменные окружения.
Использует Pydantic Settings для валидации и загрузки из .env файла.

Экземпляр настроек не читается сервисами напрямую из модуля: он
передаётся в конструкторы (FastAPI получает его через get_settings).
==============================================================================
"""

from functools import lru_cache
from typing import Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Класс для управления настройками приложения.

    Attributes:
        TELEGRAM_BOT_TOKEN (str): Токен бота, которым подписываются initData Telegram WebApp
        ADMIN_TELEGRAM_ID (str): Telegram ID пользователя, получающего права администратора
        JWT_SECRET (str): Секрет для подписи JWT токенов
        PRODUCTS_PAGE_SIZE (int): Количество товаров на странице каталога
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # === Основные настройки ===
    APP_NAME: str = "Telegram Shop API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # === Сервер ===
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5000
    # CORS разрешённые домены (через запятую, "*" - любые)
    API_CORS_ORIGINS: str = "*"
    # Каталог с загруженными файлами (скриншоты оплаты, изображения)
    UPLOADS_DIR: str = "uploads"

    # === База данных ===
    # DATABASE_URL имеет приоритет, иначе URL собирается из POSTGRES_*
    DATABASE_URL: str = ""

    POSTGRES_HOST: str = "localhost"
    POSTGRES_DB: str = "shop"
    POSTGRES_USER: str = "shop_user"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_PORT: int = 5432

    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # === Telegram ===
    TELEGRAM_BOT_TOKEN: str = ""
    ADMIN_TELEGRAM_ID: str = ""
    # Максимальный возраст initData в секундах (0 = не проверять)
    TELEGRAM_AUTH_MAX_AGE_SECONDS: int = 0

    # === JWT ===
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 7

    # === Магазин ===
    PRODUCTS_PAGE_SIZE: int = 12
    CURRENCY: str = "RUB"

    # === Логирование ===
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/api.log"
    LOG_MAX_SIZE_MB: int = 50
    LOG_BACKUP_COUNT: int = 3

    @property
    def cors_origins_list(self) -> list[str]:
        """Возвращает список разрешённых CORS origins."""
        return [origin.strip() for origin in self.API_CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def admin_telegram_id_int(self) -> Optional[int]:
        """Возвращает ADMIN_TELEGRAM_ID как int или None."""
        try:
            return int(self.ADMIN_TELEGRAM_ID) if self.ADMIN_TELEGRAM_ID else None
        except ValueError:
            return None

    @property
    def database_url(self) -> str:
        """
        Возвращает итоговый URL подключения к БД.

        Приоритет:
        1) DATABASE_URL (если задан)
        2) Сборка из POSTGRES_*

        Логин и пароль кодируются через URL-encoding, чтобы спецсимволы
        не ломали строку подключения.
        """
        if self.DATABASE_URL and self.DATABASE_URL.strip():
            return self.DATABASE_URL.strip()

        user = (self.POSTGRES_USER or "").strip().strip('"').strip("'")
        password_raw = (self.POSTGRES_PASSWORD or "").strip().strip('"').strip("'")

        host = (self.POSTGRES_HOST or "localhost").strip()
        db = (self.POSTGRES_DB or "").strip()
        port = int(self.POSTGRES_PORT or 5432)

        return f"postgresql+asyncpg://{quote_plus(user)}:{quote_plus(password_raw)}@{host}:{port}/{db}"


@lru_cache()
def get_settings() -> Settings:
    """
    Получает singleton экземпляр настроек.

    Используется как FastAPI-зависимость; в тестах переопределяется.
    """
    return Settings()
