# -*- coding: utf-8 -*-
"""
Pydantic схемы товаров.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from shop.backend.models.base import CamelModel, MessageResponse


# ==================== Запросы ====================

class ProductCreate(CamelModel):
    """Создание товара. Цены и остаток проверяются сервисом."""
    name: Optional[str] = Field(None, max_length=255, description="Название")
    price: Optional[float] = Field(None, description="Цена")
    old_price: Optional[float] = Field(None, description="Старая цена (больше текущей)")
    category_id: Optional[int] = Field(None, description="ID категории")
    description: Optional[str] = Field(None, description="Описание")
    image: Optional[str] = Field(None, description="Изображение")
    stock: Optional[float] = Field(0, description="Остаток на складе")


class ProductUpdate(CamelModel):
    """Частичное обновление товара."""
    name: Optional[str] = Field(None, max_length=255, description="Название")
    price: Optional[float] = Field(None, description="Цена")
    old_price: Optional[float] = Field(None, description="Старая цена; null или 0 - без скидки")
    category_id: Optional[int] = Field(None, description="ID категории")
    description: Optional[str] = Field(None, description="Описание")
    image: Optional[str] = Field(None, description="Изображение")
    stock: Optional[float] = Field(None, description="Остаток на складе")


# ==================== Ответы ====================

class ProductResponse(CamelModel):
    """Товар."""
    id: int = Field(..., description="ID товара")
    user_id: Optional[int] = Field(None, description="ID администратора, создавшего товар")
    name: str = Field(..., description="Название")
    category_id: int = Field(..., description="ID категории")
    category_name: Optional[str] = Field(None, description="Название категории")
    description: str = Field("", description="Описание")
    image: str = Field("", description="Изображение")
    price: float = Field(..., description="Цена")
    old_price: Optional[float] = Field(None, description="Старая цена")
    stock: int = Field(0, description="Остаток на складе")
    rating: float = Field(0.0, description="Средний рейтинг")
    num_reviews: int = Field(0, description="Количество отзывов")
    created_at: Optional[datetime] = Field(None, description="Дата создания")
    updated_at: Optional[datetime] = Field(None, description="Дата изменения")


class ProductListResponse(CamelModel):
    """Страница каталога."""
    products: List[ProductResponse] = Field(..., description="Товары")
    page: int = Field(..., description="Текущая страница")
    pages: int = Field(..., description="Всего страниц")
    count: int = Field(..., description="Всего товаров")


class ProductDeleteResponse(MessageResponse):
    deleted_reviews: int = Field(..., description="Удалено отзывов")
