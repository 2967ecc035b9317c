# -*- coding: utf-8 -*-
"""
API роутер товаров.

Эндпоинты:
- GET / - Каталог с пагинацией и фильтрами (публично)
- GET /{product_id} - Товар по ID (публично)
- POST / - Создать товар (админ)
- PUT /{product_id} - Обновить товар (админ)
- DELETE /{product_id} - Удалить товар (админ)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shop.backend.auth.dependencies import require_admin
from shop.backend.models.product import (
    ProductCreate,
    ProductDeleteResponse,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from src.core.config import Settings, get_settings
from src.db.models import Product, User
from src.db.session import get_db_session
from src.services.category_tree import UNSET
from src.services.products import ProductService

router = APIRouter()
logger = logging.getLogger(__name__)


def product_to_response(product: Product, category_name: Optional[str]) -> ProductResponse:
    response = ProductResponse.model_validate(product)
    response.category_name = category_name
    return response


async def _single_response(service: ProductService, product: Product) -> ProductResponse:
    names = await service.category_names({product.category_id})
    return product_to_response(product, names.get(product.category_id))


@router.get("/", response_model=ProductListResponse)
async def list_products(
    page_number: int = Query(1, ge=1, alias="pageNumber", description="Номер страницы"),
    category_id: Optional[int] = Query(None, alias="categoryId", description="Фильтр по категории"),
    keyword: Optional[str] = Query(None, description="Поиск по названию (без учёта регистра)"),
    include_subcategories: bool = Query(
        False, alias="includeSubcategories", description="Включать товары подкатегорий"
    ),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """Каталог: новые товары первыми, по PRODUCTS_PAGE_SIZE на страницу."""
    result = await ProductService(db, settings).list_products(
        page=page_number,
        category_id=category_id,
        keyword=keyword,
        include_subcategories=include_subcategories,
    )
    return ProductListResponse(
        products=[
            product_to_response(product, result.category_names.get(product.category_id))
            for product in result.items
        ],
        page=result.page,
        pages=result.pages,
        count=result.count,
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    service = ProductService(db, settings)
    product = await service.get_product(product_id)
    return await _single_response(service, product)


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    service = ProductService(db, settings)
    product = await service.create_product(
        admin,
        name=data.name,
        price=data.price,
        category_id=data.category_id,
        description=data.description,
        image=data.image,
        stock=data.stock,
        old_price=data.old_price,
    )
    return await _single_response(service, product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    provided = data.model_fields_set
    fields = {
        name: getattr(data, name) if name in provided else UNSET
        for name in ("name", "price", "category_id", "description", "image", "stock", "old_price")
    }
    service = ProductService(db, settings)
    product = await service.update_product(product_id, **fields)
    return await _single_response(service, product)


@router.delete("/{product_id}", response_model=ProductDeleteResponse)
async def delete_product(
    product_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """Удаление запрещено, пока товар есть в незавершённых заказах."""
    name, reviews_deleted = await ProductService(db, settings).delete_product(product_id)
    return ProductDeleteResponse(
        message=f'Товар "{name}" и {reviews_deleted} связанных отзывов удалены.',
        deleted_reviews=reviews_deleted,
    )
