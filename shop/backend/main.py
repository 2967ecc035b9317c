# -*- coding: utf-8 -*-
"""
Точка входа FastAPI приложения API магазина.

Запуск:
    uvicorn shop.backend.main:app --host 0.0.0.0 --port 5000 --reload
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from src.core.config import get_settings
from src.core.logging_config import setup_logging
from src.db.init_db import init_db
from src.db.session import close_db
from src.services.errors import ShopError

settings = get_settings()

# Инициализируем логирование
setup_logging(settings)
logger = logging.getLogger("shop.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Контекстный менеджер жизненного цикла приложения.

    Выполняет инициализацию при старте и очистку при остановке.
    """
    # Startup
    logger.info("Запуск API магазина...")
    logger.info(f"Версия: {settings.APP_VERSION}")
    logger.info(f"Debug режим: {settings.DEBUG}")

    try:
        await init_db()
        logger.info("База данных инициализирована")
    except Exception as e:
        logger.error(f"Ошибка инициализации БД: {e}")
        raise

    logger.info(f"API магазина запущено на http://{settings.API_HOST}:{settings.API_PORT}")

    yield

    # Shutdown
    logger.info("Остановка API магазина...")
    await close_db()
    logger.info("API магазина остановлено")


# Создаём приложение FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="REST API магазина в Telegram WebApp: каталог, заказы, отзывы",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Ошибки бизнес-логики
@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    """Превращает исключения сервисов в JSON-ответ с их HTTP-кодом."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Некорректные поля запроса - та же ошибка валидации, что и в сервисах
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Отвечает 400 с описанием первого некорректного поля."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Некорректное значение поля {field}: {first.get('msg', '')}" if field else "Некорректный запрос."
    logger.info(f"{request.method} {request.url.path} -> 400: {message}")
    return JSONResponse(status_code=400, content={"detail": message})


# Глобальный обработчик исключений
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Глобальный обработчик необработанных исключений."""
    logger.error(f"Необработанное исключение: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Внутренняя ошибка сервера"},
    )


# Health check endpoint
@app.get("/health", tags=["System"])
async def health_check():
    """Проверка работоспособности сервиса."""
    return {"status": "ok", "version": settings.APP_VERSION}


# API info endpoint
@app.get("/api", tags=["System"])
async def api_info():
    """Информация об API."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "message": f"{settings.APP_NAME} запущен и работает!",
    }


# Импорт и регистрация роутеров
def register_routers():
    """Регистрирует все API роутеры."""
    from shop.backend.routers import auth, categories, orders, products, reviews

    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(categories.router, prefix="/api/categories", tags=["Categories"])
    app.include_router(products.router, prefix="/api/products", tags=["Products"])
    app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
    app.include_router(reviews.router, prefix="/api/reviews", tags=["Reviews"])


# Регистрируем роутеры
register_routers()


# =============================================================================
# Раздача загруженных файлов (скриншоты оплаты, изображения)
# =============================================================================

UPLOADS_PATH = Path(settings.UPLOADS_DIR)

if UPLOADS_PATH.exists() and UPLOADS_PATH.is_dir():
    logger.info(f"Раздача загруженных файлов из: {UPLOADS_PATH.resolve()}")
    app.mount("/uploads", StaticFiles(directory=str(UPLOADS_PATH)), name="uploads")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "shop.backend.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
