# -*- coding: utf-8 -*-
"""
API роутер заказов.

Эндпоинты:
- POST / - Оформить заказ
- GET /my - Мои заказы
- GET / - Все заказы с фильтром по статусу (админ)
- GET /{order_id} - Заказ по ID (владелец или админ)
- PUT /{order_id}/status - Сменить статус заказа (админ)
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shop.backend.auth.dependencies import get_current_user, require_admin
from shop.backend.models.base import UserBrief
from shop.backend.models.order import OrderCreate, OrderResponse, OrderStatusUpdate
from src.core.config import Settings, get_settings
from src.db.models import Order, User
from src.db.session import get_db_session
from src.services.orders import OrderLineRequest, OrderService

router = APIRouter()
logger = logging.getLogger(__name__)


def order_to_response(order: Order, owners: Optional[Dict[int, User]] = None) -> OrderResponse:
    response = OrderResponse.model_validate(order)
    owner = (owners or {}).get(order.user_id)
    if owner is not None:
        response.user = UserBrief.model_validate(owner)
    return response


@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """Создаёт заказ и списывает остатки; статус нового заказа paid-pending."""
    order = await OrderService(db, settings).create_order(
        current_user,
        [OrderLineRequest(product_id=item.product_id, quantity=item.quantity) for item in data.items],
        screenshot_path=data.screenshot_path,
    )
    return order_to_response(order)


@router.get("/my", response_model=List[OrderResponse])
async def list_my_orders(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    orders = await OrderService(db, settings).list_my_orders(current_user)
    return [order_to_response(order) for order in orders]


@router.get("/", response_model=List[OrderResponse])
async def list_all_orders(
    order_status: Optional[str] = Query(None, alias="status", description="Фильтр по статусу"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    service = OrderService(db, settings)
    orders = await service.list_all_orders(order_status)
    owners = await service.owners_for(orders)
    return [order_to_response(order, owners) for order in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    service = OrderService(db, settings)
    order = await service.get_order(order_id, current_user)
    return order_to_response(order, await service.owners_for([order]))


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """Смена статуса; переход в refunded возвращает товары на склад."""
    service = OrderService(db, settings)
    order = await service.update_order_status(order_id, data.status)
    logger.info(f"Администратор {admin.id} перевёл заказ {order_id} в статус {order.status}")
    return order_to_response(order, await service.owners_for([order]))
