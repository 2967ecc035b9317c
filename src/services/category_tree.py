"""
Сервис дерева категорий.

Категории образуют лес: у каждой не более одного родителя (parent_id).
Обходы выполняются итеративно по карте смежности id -> parent_id,
которая загружается из БД одним запросом на операцию. Множество
посещённых узлов гарантирует завершение обхода даже при повреждённых
данных.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import Category, Product, Review
from src.services.errors import CategoryCycleError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Маркер "поле не передано" для частичного обновления
UNSET: Any = object()

ParentMap = dict[int, Optional[int]]


@dataclass(frozen=True)
class CascadeResult:
    categories_deleted: int
    products_deleted: int
    reviews_deleted: int


def collect_descendants(parent_map: ParentMap, root_id: int) -> set[int]:
    """Возвращает id всех потомков root_id (без самого root_id), обход в ширину."""
    children: dict[int, list[int]] = {}
    for category_id, parent_id in parent_map.items():
        if parent_id is not None:
            children.setdefault(parent_id, []).append(category_id)

    found: set[int] = set()
    queue = deque(children.get(root_id, ()))
    while queue:
        current = queue.popleft()
        if current in found or current == root_id:
            continue
        found.add(current)
        queue.extend(children.get(current, ()))
    return found


def is_descendant_in(parent_map: ParentMap, candidate_id: int, ancestor_id: int) -> bool:
    """
    Поднимается по parent_id от candidate_id.

    True, если встретили ancestor_id (или candidate_id == ancestor_id);
    False на корне, на отсутствующей категории и при зацикливании.
    """
    if candidate_id == ancestor_id:
        return True

    visited: set[int] = set()
    current: Optional[int] = candidate_id
    while current is not None and current not in visited:
        visited.add(current)
        if current not in parent_map:
            return False
        parent_id = parent_map[current]
        if parent_id == ancestor_id:
            return True
        current = parent_id
    return False


def _clean_name(name: Optional[str]) -> str:
    return (name or "").strip()


class CategoryTreeService:
    """Категории: CRUD, проверка циклов и каскадное удаление."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _load_parent_map(self) -> ParentMap:
        result = await self.session.execute(select(Category.id, Category.parent_id))
        return {row.id: row.parent_id for row in result}

    async def _get_or_none(self, category_id: int) -> Optional[Category]:
        return await self.session.get(Category, category_id)

    # -------------------- обходы дерева --------------------

    async def list_descendant_ids(self, category_id: int) -> set[int]:
        """Id всех категорий, транзитивно вложенных в category_id."""
        parent_map = await self._load_parent_map()
        return collect_descendants(parent_map, category_id)

    async def is_descendant_of(self, candidate_id: int, ancestor_id: int) -> bool:
        """Является ли candidate_id потомком ancestor_id (сама категория считается потомком)."""
        if candidate_id == ancestor_id:
            return True
        parent_map = await self._load_parent_map()
        return is_descendant_in(parent_map, candidate_id, ancestor_id)

    # -------------------- чтение --------------------

    async def list_categories(self) -> list[Category]:
        """Плоский список, отсортированный по имени; дерево строит клиент."""
        result = await self.session.execute(select(Category).order_by(Category.name, Category.id))
        return list(result.scalars().all())

    async def get_category(self, category_id: int) -> Category:
        category = await self._get_or_none(category_id)
        if category is None:
            raise NotFoundError("Категория не найдена")
        return category

    # -------------------- запись --------------------

    async def create_category(
        self,
        name: Optional[str],
        parent_id: Optional[int] = None,
        image: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Category:
        clean_name = _clean_name(name)
        if not clean_name:
            raise ValidationError("Название категории обязательно для заполнения.")

        if parent_id is not None and await self._get_or_none(parent_id) is None:
            raise ValidationError(f"Родительская категория с ID {parent_id} не найдена.")

        category = Category(
            name=clean_name,
            parent_id=parent_id,
            image=image or "",
            description=(description or "").strip(),
        )
        self.session.add(category)
        await self.session.commit()

        logger.info(f"Создана категория {category.id} '{category.name}' (parent={parent_id})")
        return category

    async def set_parent(self, category: Category, new_parent_id: Optional[int]) -> None:
        """
        Переносит категорию под нового родителя (None - сделать корневой).

        Не фиксирует транзакцию: вызывающий код сохраняет изменения сам.
        """
        if new_parent_id is None:
            category.parent_id = None
            return

        if new_parent_id == category.id:
            raise CategoryCycleError("Категория не может быть родительской для самой себя.")

        if await self.is_descendant_of(new_parent_id, category.id):
            raise CategoryCycleError(
                "Нельзя сделать категорию дочерней для одного из своих потомков (циклическая зависимость)."
            )

        if await self._get_or_none(new_parent_id) is None:
            raise ValidationError(f"Новая родительская категория с ID {new_parent_id} не найдена.")

        category.parent_id = new_parent_id

    async def update_category(
        self,
        category_id: int,
        *,
        name: Optional[str] = UNSET,
        parent_id: Optional[int] = UNSET,
        image: Optional[str] = UNSET,
        description: Optional[str] = UNSET,
    ) -> Category:
        """
        Частичное обновление категории.

        parent_id: не передан - не меняется; None - категория становится корневой.
        """
        category = await self.get_category(category_id)

        if parent_id is not UNSET:
            await self.set_parent(category, parent_id)

        if name is not UNSET and _clean_name(name):
            category.name = _clean_name(name)
        if image is not UNSET and image is not None:
            category.image = image
        if description is not UNSET and description is not None:
            category.description = description.strip()

        await self.session.commit()
        return category

    async def delete_category_cascade(self, category_id: int) -> CascadeResult:
        """
        Удаляет категорию, всех её потомков, их товары и отзывы на эти товары.

        Всё выполняется в одной транзакции сессии.
        """
        category = await self.get_category(category_id)

        category_name = category.name
        ids_to_delete = sorted({category.id} | await self.list_descendant_ids(category.id))

        product_ids_result = await self.session.execute(
            select(Product.id).where(Product.category_id.in_(ids_to_delete))
        )
        product_ids = list(product_ids_result.scalars().all())

        reviews_deleted = 0
        if product_ids:
            reviews_result = await self.session.execute(
                delete(Review).where(Review.product_id.in_(product_ids))
            )
            reviews_deleted = reviews_result.rowcount or 0

        products_result = await self.session.execute(
            delete(Product).where(Product.category_id.in_(ids_to_delete))
        )
        categories_result = await self.session.execute(
            delete(Category).where(Category.id.in_(ids_to_delete))
        )
        await self.session.commit()

        result = CascadeResult(
            categories_deleted=categories_result.rowcount or 0,
            products_deleted=products_result.rowcount or 0,
            reviews_deleted=reviews_deleted,
        )
        logger.info(
            f"Удалена категория {category_id} '{category_name}': "
            f"категорий {result.categories_deleted}, товаров {result.products_deleted}, "
            f"отзывов {result.reviews_deleted}"
        )
        return result
