# -*- coding: utf-8 -*-
"""
Pydantic схемы категорий.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from shop.backend.models.base import CamelModel, MessageResponse


def _empty_to_none(value: Any) -> Any:
    # Клиент передаёт "" для корневой категории
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ==================== Запросы ====================

class CategoryCreate(CamelModel):
    """Создание категории."""
    name: Optional[str] = Field(None, max_length=255, description="Название")
    parent_id: Optional[int] = Field(None, description="ID родительской категории (null - корневая)")
    image: Optional[str] = Field(None, description="URL, Data URL или emoji")
    description: Optional[str] = Field(None, description="Описание")

    @field_validator("parent_id", mode="before")
    @classmethod
    def empty_parent_is_root(cls, value: Any) -> Any:
        return _empty_to_none(value)


class CategoryUpdate(CamelModel):
    """
    Частичное обновление категории.

    Непереданный parentId не меняется; null или "" делает категорию корневой.
    """
    name: Optional[str] = Field(None, max_length=255, description="Название")
    parent_id: Optional[int] = Field(None, description="ID нового родителя")
    image: Optional[str] = Field(None, description="URL, Data URL или emoji")
    description: Optional[str] = Field(None, description="Описание")

    @field_validator("parent_id", mode="before")
    @classmethod
    def empty_parent_is_root(cls, value: Any) -> Any:
        return _empty_to_none(value)


# ==================== Ответы ====================

class CategoryResponse(CamelModel):
    """Категория."""
    id: int = Field(..., description="ID категории")
    name: str = Field(..., description="Название")
    parent_id: Optional[int] = Field(None, description="ID родительской категории")
    image: str = Field("", description="Изображение")
    description: str = Field("", description="Описание")
    created_at: Optional[datetime] = Field(None, description="Дата создания")
    updated_at: Optional[datetime] = Field(None, description="Дата изменения")


class CategoryDeleteResponse(MessageResponse):
    """Результат каскадного удаления."""
    deleted_categories: int = Field(..., description="Удалено категорий (вместе с исходной)")
    deleted_products: int = Field(..., description="Удалено товаров")
    deleted_reviews: int = Field(..., description="Удалено отзывов")
