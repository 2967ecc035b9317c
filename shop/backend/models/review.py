# -*- coding: utf-8 -*-
"""
Pydantic схемы отзывов.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from shop.backend.models.base import CamelModel, UserBrief


class ReviewCreate(CamelModel):
    """Новый отзыв по завершённому заказу."""
    product_id: Optional[int] = Field(None, description="ID товара")
    order_id: Optional[int] = Field(None, description="ID заказа")
    # Оценка проверяется сервисом отзывов
    rating: Any = Field(None, description="Оценка от 1 до 5")
    text: Optional[str] = Field("", description="Текст отзыва")


class ReviewResponse(CamelModel):
    """Отзыв."""
    id: int = Field(..., description="ID отзыва")
    user_id: int = Field(..., description="ID автора")
    user: Optional[UserBrief] = Field(None, description="Автор")
    author_name: str = Field(..., description="Имя автора на момент отзыва")
    product_id: int = Field(..., description="ID товара")
    product_name: Optional[str] = Field(None, description="Название товара")
    order_id: int = Field(..., description="ID заказа")
    rating: int = Field(..., description="Оценка")
    text: str = Field("", description="Текст")
    created_at: Optional[datetime] = Field(None, description="Дата создания")
