# -*- coding: utf-8 -*-
"""
API роутер категорий.

Эндпоинты:
- GET / - Список категорий (публично)
- GET /{category_id} - Категория по ID (публично)
- POST / - Создать категорию (админ)
- PUT /{category_id} - Обновить категорию (админ)
- DELETE /{category_id} - Удалить категорию с подкатегориями и товарами (админ)
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shop.backend.auth.dependencies import require_admin
from shop.backend.models.category import (
    CategoryCreate,
    CategoryDeleteResponse,
    CategoryResponse,
    CategoryUpdate,
)
from src.db.models import User
from src.db.session import get_db_session
from src.services.category_tree import UNSET, CategoryTreeService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db_session)):
    """Плоский список категорий, отсортированный по имени."""
    return await CategoryTreeService(db).list_categories()


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, db: AsyncSession = Depends(get_db_session)):
    return await CategoryTreeService(db).get_category(category_id)


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await CategoryTreeService(db).create_category(
        name=data.name,
        parent_id=data.parent_id,
        image=data.image,
        description=data.description,
    )


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Обновление категории; смена родителя проверяется на циклы."""
    provided = data.model_fields_set
    return await CategoryTreeService(db).update_category(
        category_id,
        name=data.name if "name" in provided else UNSET,
        parent_id=data.parent_id if "parent_id" in provided else UNSET,
        image=data.image if "image" in provided else UNSET,
        description=data.description if "description" in provided else UNSET,
    )


@router.delete("/{category_id}", response_model=CategoryDeleteResponse)
async def delete_category(
    category_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Каскадно удаляет категорию, её подкатегории, их товары и отзывы на эти товары."""
    service = CategoryTreeService(db)
    category = await service.get_category(category_id)
    category_name = category.name

    result = await service.delete_category_cascade(category_id)
    logger.info(f"Администратор {admin.id} удалил категорию {category_id}")

    return CategoryDeleteResponse(
        message=(
            f"Категория '{category_name}' и {result.categories_deleted - 1} подкатегорий, "
            f"а также {result.products_deleted} связанных товаров удалены."
        ),
        deleted_categories=result.categories_deleted,
        deleted_products=result.products_deleted,
        deleted_reviews=result.reviews_deleted,
    )
