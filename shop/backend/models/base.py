# -*- coding: utf-8 -*-
"""
Базовые Pydantic схемы API магазина.

Поля в JSON именуются в camelCase (parentId, oldPrice, totalAmount...),
в Python - в snake_case.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Схема с camelCase-алиасами, принимает и ORM объекты."""

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class MessageResponse(CamelModel):
    """Ответ с текстовым сообщением."""
    message: str = Field(..., description="Сообщение")


class UserBrief(CamelModel):
    """Краткие данные пользователя для вложения в заказы и отзывы."""
    id: int = Field(..., description="ID пользователя в магазине")
    telegram_id: Optional[int] = Field(None, description="Telegram ID")
    first_name: str = Field("", description="Имя")
    username: str = Field("", description="Username")
