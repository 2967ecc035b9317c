"""
Сервис каталога товаров: листинг с пагинацией, CRUD и проверки цен/остатков.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings
from src.db.models import Category, Order, OrderItem, Product, Review, User
from src.services.category_tree import UNSET, CategoryTreeService
from src.services.errors import NotFoundError, ProductInUseError, ValidationError

logger = logging.getLogger(__name__)

# Статусы, при которых заказ больше не удерживает товар
SETTLED_ORDER_STATUSES = ("completed", "refunded")


@dataclass
class ProductPage:
    items: list[Product]
    page: int
    pages: int
    count: int
    category_names: dict[int, str] = field(default_factory=dict)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _validate_price(price: Any) -> float:
    try:
        value = float(price)
    except (TypeError, ValueError):
        raise ValidationError("Цена должна быть положительным числом.")
    if not math.isfinite(value) or value <= 0:
        raise ValidationError("Цена должна быть положительным числом.")
    return value


def _validate_stock(stock: Any) -> int:
    try:
        value = float(stock)
    except (TypeError, ValueError):
        raise ValidationError("Остаток должен быть целым числом.")
    if not value.is_integer():
        raise ValidationError("Остаток должен быть целым числом.")
    if value < 0:
        raise ValidationError("Остаток не может быть отрицательным.")
    return int(value)


def _validate_old_price(old_price: Any, price: float) -> Optional[float]:
    """old_price: None/0/"" - скидки нет; иначе число больше текущей цены."""
    if old_price in (None, "", 0):
        return None
    try:
        value = float(old_price)
    except (TypeError, ValueError):
        raise ValidationError("Старая цена должна быть числом не меньше 0.")
    if not math.isfinite(value) or value < 0:
        raise ValidationError("Старая цена должна быть числом не меньше 0.")
    if value <= price:
        raise ValidationError("Старая цена должна быть больше текущей цены.")
    return value


class ProductService:
    """Товары магазина."""

    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.settings = settings

    async def _ensure_category(self, category_id: int) -> None:
        if await self.session.get(Category, category_id) is None:
            raise ValidationError(f"Категория с ID {category_id} не найдена.")

    async def category_names(self, category_ids: set[int]) -> dict[int, str]:
        """Пакетно подгружает имена категорий для списка товаров."""
        if not category_ids:
            return {}
        result = await self.session.execute(
            select(Category.id, Category.name).where(Category.id.in_(sorted(category_ids)))
        )
        return {row.id: row.name for row in result}

    async def list_products(
        self,
        page: int = 1,
        category_id: Optional[int] = None,
        keyword: Optional[str] = None,
        include_subcategories: bool = False,
    ) -> ProductPage:
        page_size = self.settings.PRODUCTS_PAGE_SIZE
        page = max(page, 1)

        filters = []
        if category_id is not None:
            if include_subcategories:
                tree = CategoryTreeService(self.session)
                ids = {category_id} | await tree.list_descendant_ids(category_id)
                filters.append(Product.category_id.in_(sorted(ids)))
            else:
                filters.append(Product.category_id == category_id)
        if keyword and keyword.strip():
            pattern = f"%{_escape_like(keyword.strip())}%"
            filters.append(Product.name.ilike(pattern, escape="\\"))

        count_result = await self.session.execute(
            select(func.count(Product.id)).where(*filters)
        )
        count = count_result.scalar() or 0

        result = await self.session.execute(
            select(Product)
            .where(*filters)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset(page_size * (page - 1))
            .limit(page_size)
        )
        items = list(result.scalars().all())

        return ProductPage(
            items=items,
            page=page,
            pages=math.ceil(count / page_size) if count else 0,
            count=count,
            category_names=await self.category_names({p.category_id for p in items}),
        )

    async def get_product(self, product_id: int) -> Product:
        product = await self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Товар не найден")
        return product

    async def create_product(
        self,
        creator: Optional[User],
        *,
        name: Optional[str],
        price: Any,
        category_id: Optional[int],
        description: Optional[str] = "",
        image: Optional[str] = "",
        stock: Any = 0,
        old_price: Any = None,
    ) -> Product:
        clean_name = (name or "").strip()
        if not clean_name or price in (None, "", 0) or category_id is None:
            raise ValidationError("Пожалуйста, укажите название, цену и категорию товара.")

        price_value = _validate_price(price)
        stock_value = _validate_stock(stock if stock is not None else 0)
        old_price_value = _validate_old_price(old_price, price_value)
        await self._ensure_category(category_id)

        product = Product(
            user_id=creator.id if creator else None,
            name=clean_name,
            price=price_value,
            category_id=category_id,
            description=(description or "").strip(),
            image=image or "",
            stock=stock_value,
            old_price=old_price_value,
            rating=0.0,
            num_reviews=0,
        )
        self.session.add(product)
        await self.session.commit()

        logger.info(f"Создан товар {product.id} '{product.name}' (остаток {product.stock})")
        return product

    async def update_product(
        self,
        product_id: int,
        *,
        name: Optional[str] = UNSET,
        price: Any = UNSET,
        category_id: Optional[int] = UNSET,
        description: Optional[str] = UNSET,
        image: Optional[str] = UNSET,
        stock: Any = UNSET,
        old_price: Any = UNSET,
    ) -> Product:
        """Частичное обновление; проверки выполняются по итоговым значениям."""
        product = await self.get_product(product_id)

        new_price = product.price if price is UNSET or price is None else _validate_price(price)
        new_stock = product.stock if stock is UNSET or stock is None else _validate_stock(stock)
        if old_price is UNSET:
            new_old_price = _validate_old_price(product.old_price, new_price)
        else:
            new_old_price = _validate_old_price(old_price, new_price)

        if category_id is not UNSET and category_id is not None:
            await self._ensure_category(category_id)
            product.category_id = category_id

        if name is not UNSET and (name or "").strip():
            product.name = name.strip()
        if description is not UNSET and description is not None:
            product.description = description.strip()
        if image is not UNSET and image is not None:
            product.image = image

        product.price = new_price
        product.stock = new_stock
        product.old_price = new_old_price

        await self.session.commit()
        return product

    async def find_active_order_id(self, product_id: int) -> Optional[int]:
        """Id любого незавершённого заказа, содержащего товар."""
        result = await self.session.execute(
            select(Order.id)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .where(
                OrderItem.product_id == product_id,
                Order.status.not_in(SETTLED_ORDER_STATUSES),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def delete_product(self, product_id: int) -> tuple[str, int]:
        """
        Удаляет товар и отзывы на него.

        Returns:
            (название товара, количество удалённых отзывов)
        """
        product = await self.get_product(product_id)
        product_name = product.name

        active_order_id = await self.find_active_order_id(product_id)
        if active_order_id is not None:
            raise ProductInUseError(
                f'Нельзя удалить товар "{product_name}", так как он присутствует в активных заказах '
                f"(ID заказа: {active_order_id}). Сначала завершите или отмените заказ.",
                extra={"orderId": active_order_id},
            )

        reviews_result = await self.session.execute(
            delete(Review).where(Review.product_id == product_id)
        )
        reviews_deleted = reviews_result.rowcount or 0

        await self.session.delete(product)
        await self.session.commit()

        logger.info(f"Удалён товар {product_id} '{product_name}', отзывов удалено: {reviews_deleted}")
        return product_name, reviews_deleted
