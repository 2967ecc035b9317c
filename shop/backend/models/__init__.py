# -*- coding: utf-8 -*-
"""
Pydantic модели (схемы) API магазина.

Содержит:
- auth: Вход через Telegram
- category: Категории
- product: Товары
- order: Заказы
- review: Отзывы
"""

from shop.backend.models.base import CamelModel, MessageResponse, UserBrief
from shop.backend.models.auth import AuthResponse, TelegramAuthRequest, UserResponse
from shop.backend.models.category import (
    CategoryCreate,
    CategoryDeleteResponse,
    CategoryResponse,
    CategoryUpdate,
)
from shop.backend.models.product import (
    ProductCreate,
    ProductDeleteResponse,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from shop.backend.models.order import (
    OrderCreate,
    OrderItemCreate,
    OrderResponse,
    OrderStatusUpdate,
)
from shop.backend.models.review import ReviewCreate, ReviewResponse

__all__ = [
    "CamelModel",
    "MessageResponse",
    "UserBrief",
    # Auth
    "AuthResponse",
    "TelegramAuthRequest",
    "UserResponse",
    # Categories
    "CategoryCreate",
    "CategoryDeleteResponse",
    "CategoryResponse",
    "CategoryUpdate",
    # Products
    "ProductCreate",
    "ProductDeleteResponse",
    "ProductListResponse",
    "ProductResponse",
    "ProductUpdate",
    # Orders
    "OrderCreate",
    "OrderItemCreate",
    "OrderResponse",
    "OrderStatusUpdate",
    # Reviews
    "ReviewCreate",
    "ReviewResponse",
]
