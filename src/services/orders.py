"""
Сервис заказов и складских остатков.

Статусы заказа: paid-pending -> processing -> completed; из любого
незавершённого статуса возможен переход в refunded. Переход в refunded
возвращает товары на склад ровно один раз; refunded - конечный статус,
выйти из него нельзя.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import Settings
from src.db.base import utcnow
from src.db.models import Order, OrderItem, Product, User
from src.services.errors import (
    ConflictError,
    ForbiddenError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from src.services.notifications import OrderNotifier

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID_PENDING = "paid-pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REFUNDED = "refunded"


ORDER_STATUSES = tuple(status.value for status in OrderStatus)


@dataclass(frozen=True)
class OrderLineRequest:
    """Позиция корзины: товар и количество."""

    product_id: int
    quantity: int


def _as_positive_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Количество товара должно быть целым положительным числом.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Количество товара должно быть целым положительным числом.")
    if not number.is_integer() or number < 1:
        raise ValidationError("Количество товара должно быть целым положительным числом.")
    return int(number)


def merge_lines(items: Iterable[OrderLineRequest]) -> dict[int, int]:
    """Объединяет повторяющиеся товары корзины, сохраняя порядок."""
    merged: dict[int, int] = {}
    for item in items:
        quantity = _as_positive_int(item.quantity)
        merged[item.product_id] = merged.get(item.product_id, 0) + quantity
    return merged


def validate_status(status: Optional[str]) -> str:
    if not status or status not in ORDER_STATUSES:
        raise ValidationError(
            f"Неверный или отсутствующий статус. Допустимые значения: {', '.join(ORDER_STATUSES)}."
        )
    return status


class OrderService:
    """Создание заказов, списание и возврат остатков, смена статусов."""

    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.settings = settings
        self.notifier = OrderNotifier(settings)

    async def _load_order(self, order_id: int, *, refresh: bool = False) -> Order:
        query = select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Заказ не найден.")
        return order

    async def owners_for(self, orders: Iterable[Order]) -> dict[int, User]:
        """Пакетно подгружает владельцев заказов."""
        user_ids = sorted({order.user_id for order in orders})
        if not user_ids:
            return {}
        result = await self.session.execute(select(User).where(User.id.in_(user_ids)))
        return {user.id: user for user in result.scalars().all()}

    # -------------------- создание заказа --------------------

    async def create_order(
        self,
        customer: User,
        items: Iterable[OrderLineRequest],
        screenshot_path: Optional[str] = None,
    ) -> Order:
        """
        Создаёт заказ со снимками товаров и списывает остатки.

        Все позиции проверяются до любых изменений. Списание и вставка
        заказа выполняются в одной транзакции; списание защищено условием
        stock >= quantity, поэтому параллельный заказ не уведёт остаток в минус.
        """
        lines = merge_lines(items)
        if not lines:
            raise ValidationError("Корзина пуста. Невозможно создать заказ.")

        result = await self.session.execute(
            select(Product).where(Product.id.in_(list(lines)))
        )
        products = {product.id: product for product in result.scalars().all()}

        snapshots: list[OrderItem] = []
        total_amount = 0.0
        for product_id, quantity in lines.items():
            product = products.get(product_id)
            if product is None:
                raise NotFoundError(f"Товар с ID {product_id} не найден.")
            if product.stock < quantity:
                raise InsufficientStockError(product.id, product.name, product.stock, quantity)

            snapshots.append(
                OrderItem(
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    quantity=quantity,
                    image=product.image or "",
                )
            )
            total_amount += product.price * quantity

        for snapshot in snapshots:
            decremented = await self.session.execute(
                update(Product)
                .where(Product.id == snapshot.product_id, Product.stock >= snapshot.quantity)
                .values(stock=Product.stock - snapshot.quantity, updated_at=utcnow())
            )
            if decremented.rowcount != 1:
                available_result = await self.session.execute(
                    select(Product.stock).where(Product.id == snapshot.product_id)
                )
                available = available_result.scalar_one_or_none() or 0
                error = InsufficientStockError(
                    snapshot.product_id, snapshot.name, available, snapshot.quantity
                )
                # rollback экспирирует все объекты сессии, в том числе customer
                await self.session.rollback()
                raise error
            logger.info(f"Уменьшен остаток товара {snapshot.name} (ID: {snapshot.product_id}) на {snapshot.quantity}")

        order = Order(
            user_id=customer.id,
            items=snapshots,
            total_amount=round(total_amount, 2),
            status=OrderStatus.PAID_PENDING.value,
            screenshot_path=screenshot_path or None,
            review_submitted=False,
        )
        self.session.add(order)
        await self.session.commit()

        self.notifier.new_order(order, customer)
        return order

    # -------------------- чтение --------------------

    async def list_my_orders(self, customer: User) -> list[Order]:
        result = await self.session.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.user_id == customer.id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def list_all_orders(self, status: Optional[str] = None) -> list[Order]:
        query = select(Order).options(selectinload(Order.items))
        if status:
            query = query.where(Order.status == validate_status(status))
        result = await self.session.execute(
            query.order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def get_order(self, order_id: int, requester: User) -> Order:
        """Заказ доступен владельцу и администратору."""
        order = await self._load_order(order_id)
        if not requester.is_admin and order.user_id != requester.id:
            raise ForbiddenError("Доступ запрещен: вы не можете просматривать этот заказ.")
        return order

    # -------------------- смена статуса --------------------

    async def update_order_status(self, order_id: int, new_status: Optional[str]) -> Order:
        status = validate_status(new_status)
        order = await self._load_order(order_id)
        old_status = order.status
        if old_status == OrderStatus.REFUNDED.value and status != OrderStatus.REFUNDED.value:
            raise ConflictError("Заказ уже возвращён, изменить его статус нельзя.")
        lines = [(item.product_id, item.name, item.quantity) for item in order.items]

        if status == OrderStatus.REFUNDED.value and old_status != OrderStatus.REFUNDED.value:
            # Условное обновление: возврат на склад делает только тот,
            # кто фактически перевёл заказ в refunded
            transition = await self.session.execute(
                update(Order)
                .where(Order.id == order_id, Order.status != OrderStatus.REFUNDED.value)
                .values(status=status, updated_at=utcnow())
            )
            await self.session.commit()
            if transition.rowcount == 1:
                logger.info(f"Заказ {order_id}: смена статуса на 'refunded', возврат товаров на склад")
                await self._restock(order_id, lines)
        else:
            order.status = status
            await self.session.commit()

        order = await self._load_order(order_id, refresh=True)

        if status != old_status:
            owner = await self.session.get(User, order.user_id)
            self.notifier.status_changed(order_id, owner.telegram_id if owner else None, status)

        return order

    async def _restock(self, order_id: int, lines: list[tuple[int, str, int]]) -> None:
        """
        Возвращает позиции заказа на склад, каждую в своей транзакции.

        Ошибка по одной позиции логируется и не прерывает остальные.
        """
        for product_id, name, quantity in lines:
            try:
                result = await self.session.execute(
                    update(Product)
                    .where(Product.id == product_id)
                    .values(stock=Product.stock + quantity, updated_at=utcnow())
                )
                await self.session.commit()
            except SQLAlchemyError:
                await self.session.rollback()
                logger.exception(f"Заказ {order_id}: ошибка возврата товара {product_id} на склад")
                continue

            if result.rowcount:
                logger.info(f"  - Возвращено {quantity} шт. товара {name} (ID: {product_id})")
            else:
                logger.warning(f"Заказ {order_id}: товар {product_id} ({name}) не найден, возврат пропущен")
