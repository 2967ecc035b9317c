# tests/test_category_tree.py
import pytest
from sqlalchemy import func, select

from src.db.models import Category, Order, OrderItem, Product, Review
from src.services.category_tree import (
    CategoryTreeService,
    collect_descendants,
    is_descendant_in,
)
from src.services.errors import CategoryCycleError, NotFoundError, ValidationError


# --- Чистые функции обхода ---

def test_collect_descendants_walks_all_levels():
    parent_map = {1: None, 2: 1, 3: 2, 4: 3, 5: None, 6: 5}
    assert collect_descendants(parent_map, 1) == {2, 3, 4}
    assert collect_descendants(parent_map, 5) == {6}
    assert collect_descendants(parent_map, 4) == set()


def test_collect_descendants_terminates_on_cycle():
    # Повреждённые данные: 2 -> 3 -> 2
    parent_map = {1: None, 2: 3, 3: 2}
    assert collect_descendants(parent_map, 2) == {3}


def test_is_descendant_self_is_true():
    parent_map = {1: None, 2: 1}
    assert is_descendant_in(parent_map, 1, 1) is True
    assert is_descendant_in(parent_map, 2, 2) is True


def test_root_is_not_descendant_of_anything_else():
    parent_map = {1: None, 2: 1, 3: None}
    assert is_descendant_in(parent_map, 1, 2) is False
    assert is_descendant_in(parent_map, 1, 3) is False


def test_is_descendant_missing_and_cyclic_chains_are_false():
    assert is_descendant_in({1: None}, 42, 1) is False
    assert is_descendant_in({2: 3, 3: 2, 9: None}, 2, 9) is False


# --- Сервис ---

async def test_list_descendant_ids(session, make_category):
    root = await make_category("Одежда")
    child = await make_category("Куртки", parent_id=root.id)
    grandchild = await make_category("Пуховики", parent_id=child.id)
    other = await make_category("Обувь")

    service = CategoryTreeService(session)
    assert await service.list_descendant_ids(root.id) == {child.id, grandchild.id}
    assert await service.list_descendant_ids(other.id) == set()
    assert await service.is_descendant_of(grandchild.id, root.id) is True
    assert await service.is_descendant_of(root.id, grandchild.id) is False


async def test_set_parent_to_descendant_is_rejected(session, make_category):
    root = await make_category("A")
    child = await make_category("B", parent_id=root.id)
    grandchild = await make_category("C", parent_id=child.id)

    service = CategoryTreeService(session)
    for descendant_id in await service.list_descendant_ids(root.id):
        with pytest.raises(CategoryCycleError):
            await service.update_category(root.id, parent_id=descendant_id)

    await session.refresh(root)
    assert root.parent_id is None
    assert grandchild.parent_id == child.id


async def test_set_parent_to_self_is_rejected(session, make_category):
    category = await make_category("A")
    with pytest.raises(CategoryCycleError):
        await CategoryTreeService(session).update_category(category.id, parent_id=category.id)


async def test_set_parent_to_missing_category(session, make_category):
    category = await make_category("A")
    with pytest.raises(ValidationError):
        await CategoryTreeService(session).update_category(category.id, parent_id=9999)


async def test_move_and_make_root(session, make_category):
    a = await make_category("A")
    b = await make_category("B")
    c = await make_category("C", parent_id=a.id)

    service = CategoryTreeService(session)
    moved = await service.update_category(c.id, parent_id=b.id)
    assert moved.parent_id == b.id

    rooted = await service.update_category(c.id, parent_id=None)
    assert rooted.parent_id is None

    # Непереданный parent_id не меняет родителя
    renamed = await service.update_category(a.id, name="  A2  ")
    assert renamed.name == "A2"
    assert renamed.parent_id is None


async def test_create_category_validation(session, make_category):
    service = CategoryTreeService(session)

    with pytest.raises(ValidationError):
        await service.create_category("   ")
    with pytest.raises(ValidationError):
        await service.create_category("Потерянная", parent_id=777)

    parent = await make_category("Родитель")
    created = await service.create_category(" Ребёнок ", parent_id=parent.id, image="👕")
    assert created.name == "Ребёнок"
    assert created.parent_id == parent.id
    assert created.image == "👕"


async def test_get_missing_category(session):
    with pytest.raises(NotFoundError):
        await CategoryTreeService(session).get_category(404)


async def test_cascade_delete_touches_only_subtree(session, make_category, make_product, customer):
    """🌲 Удаляется ровно {C} ∪ потомки(C) и их товары, остальное не трогается."""
    root = await make_category("Root")
    child = await make_category("Child", parent_id=root.id)
    grandchild = await make_category("Grandchild", parent_id=child.id)
    sibling = await make_category("Sibling")

    await make_product("P-root", root)
    p_grand = await make_product("P-grand", grandchild)
    p_sibling = await make_product("P-sibling", sibling)

    order = Order(
        user_id=customer.id,
        total_amount=100.0,
        status="completed",
        items=[OrderItem(product_id=p_grand.id, name=p_grand.name, price=100.0, quantity=1)],
    )
    session.add(order)
    await session.commit()
    session.add(Review(user_id=customer.id, product_id=p_grand.id, order_id=order.id, author_name="Иван", rating=5))
    await session.commit()

    p_grand_id, p_sibling_id, sibling_id = p_grand.id, p_sibling.id, sibling.id

    result = await CategoryTreeService(session).delete_category_cascade(root.id)

    assert result.categories_deleted == 3
    assert result.products_deleted == 2
    assert result.reviews_deleted == 1

    remaining_categories = (await session.execute(select(Category.id))).scalars().all()
    remaining_products = (await session.execute(select(Product.id))).scalars().all()
    assert set(remaining_categories) == {sibling_id}
    assert set(remaining_products) == {p_sibling_id}
    assert (await session.execute(select(func.count(Review.id)))).scalar() == 0

    # Снимок в заказе переживает удаление товара
    items = (await session.execute(select(OrderItem.product_id))).scalars().all()
    assert items == [p_grand_id]


async def test_cascade_delete_missing_category(session):
    with pytest.raises(NotFoundError):
        await CategoryTreeService(session).delete_category_cascade(12345)
