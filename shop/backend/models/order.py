# -*- coding: utf-8 -*-
"""
Pydantic схемы заказов.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from shop.backend.models.base import CamelModel, UserBrief


# ==================== Запросы ====================

class OrderItemCreate(CamelModel):
    """Позиция корзины."""
    product_id: int = Field(..., description="ID товара")
    quantity: float = Field(..., description="Количество (целое положительное)")


class OrderCreate(CamelModel):
    """Оформление заказа."""
    items: List[OrderItemCreate] = Field(default_factory=list, description="Позиции корзины")
    screenshot_path: Optional[str] = Field(None, max_length=512, description="Путь к скриншоту оплаты")


class OrderStatusUpdate(CamelModel):
    """Смена статуса заказа администратором."""
    status: Optional[str] = Field(None, description="Новый статус")


# ==================== Ответы ====================

class OrderItemResponse(CamelModel):
    """Снимок товара в заказе."""
    product_id: int = Field(..., description="ID товара")
    name: str = Field(..., description="Название на момент заказа")
    price: float = Field(..., description="Цена на момент заказа")
    quantity: int = Field(..., description="Количество")
    image: str = Field("", description="Изображение на момент заказа")


class OrderResponse(CamelModel):
    """Заказ."""
    id: int = Field(..., description="ID заказа")
    user_id: int = Field(..., description="ID покупателя")
    user: Optional[UserBrief] = Field(None, description="Покупатель")
    items: List[OrderItemResponse] = Field(..., description="Позиции")
    total_amount: float = Field(..., description="Сумма заказа")
    status: str = Field(..., description="Статус")
    screenshot_path: Optional[str] = Field(None, description="Путь к скриншоту оплаты")
    review_submitted: bool = Field(False, description="Отзыв по заказу оставлен")
    created_at: Optional[datetime] = Field(None, description="Дата создания")
    updated_at: Optional[datetime] = Field(None, description="Дата изменения")
