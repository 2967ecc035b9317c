"""
Исключения бизнес-логики магазина.

Каждое исключение знает свой HTTP-код; приложение FastAPI превращает
их в JSON-ответ {"detail": ..., **extra}.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ShopError(Exception):
    """Базовое исключение сервисов магазина."""

    status_code: int = 500

    def __init__(self, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, **self.extra}


class ConfigurationError(ShopError):
    """Сервер сконфигурирован неполностью (нет токена бота, секрета и т.п.)."""

    status_code = 500


class ValidationError(ShopError):
    """Отсутствующее или некорректное поле запроса."""

    status_code = 400


class NotFoundError(ShopError):
    status_code = 404


class AuthenticationError(ShopError):
    """Нет токена, токен невалиден/истёк или подпись Telegram не сошлась."""

    status_code = 401


class ForbiddenError(ShopError):
    """Пользователь аутентифицирован, но не имеет прав."""

    status_code = 403


class ConflictError(ShopError):
    """Нарушение бизнес-правила."""

    status_code = 400


class CategoryCycleError(ConflictError):
    pass


class ProductInUseError(ConflictError):
    pass


class DuplicateReviewError(ConflictError):
    pass


class InsufficientStockError(ConflictError):
    """Недостаточно товара на складе."""

    def __init__(self, product_id: int, product_name: str, available: int, requested: int) -> None:
        super().__init__(
            f'Недостаточно товара "{product_name}" на складе. '
            f"Доступно: {available}, запрошено: {requested}.",
            extra={"productId": product_id, "availableStock": available},
        )
        self.product_id = product_id
        self.available_stock = available
        self.requested = requested


class NotEligibleError(ShopError):
    """Заказ не даёт права оставить отзыв."""

    status_code = 403
