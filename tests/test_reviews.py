# tests/test_reviews.py
import pytest
from sqlalchemy import event, func, insert, select

from src.db.models import Order, Review
from src.services.errors import (
    DuplicateReviewError,
    NotEligibleError,
    NotFoundError,
    ValidationError,
)
from src.services.orders import OrderLineRequest, OrderService
from src.services.reviews import ReviewService, validate_rating


@pytest.fixture
def place_order(session, settings):
    """Оформляет заказ и переводит его в нужный статус."""

    async def _place(user, product, status: str = "completed", quantity: int = 1) -> Order:
        service = OrderService(session, settings)
        order = await service.create_order(user, [OrderLineRequest(product_id=product.id, quantity=quantity)])
        if status != order.status:
            order = await service.update_order_status(order.id, status)
        return order

    return _place


@pytest.mark.parametrize("rating", [1, 5, 3.0, "4"])
def test_validate_rating_accepts_integers_in_range(rating):
    assert 1 <= validate_rating(rating) <= 5


@pytest.mark.parametrize("rating", [0, 6, 4.5, "abc", None, True])
def test_validate_rating_rejects(rating):
    with pytest.raises(ValidationError):
        validate_rating(rating)


@pytest.mark.parametrize("status", ["paid-pending", "processing", "refunded"])
async def test_review_requires_completed_order(session, customer, make_category, make_product, place_order, status):
    category = await make_category("Одежда")
    product = await make_product("Худи", category)
    order = await place_order(customer, product, status=status)

    service = ReviewService(session)
    with pytest.raises(NotEligibleError):
        await service.create_review(customer, product.id, order.id, rating=5, text="Отлично")
    # Оценка вне диапазона не меняет вердикт
    with pytest.raises(NotEligibleError):
        await service.create_review(customer, product.id, order.id, rating=42, text="")


async def test_review_requires_own_order_with_product(
    session, customer, other_customer, make_category, make_product, place_order
):
    category = await make_category("Одежда")
    bought = await make_product("Худи", category)
    not_bought = await make_product("Кепка", category)
    order = await place_order(customer, bought)

    service = ReviewService(session)
    with pytest.raises(NotEligibleError):
        await service.create_review(other_customer, bought.id, order.id, rating=5)
    with pytest.raises(NotEligibleError):
        await service.create_review(customer, not_bought.id, order.id, rating=5)
    with pytest.raises(NotFoundError):
        await service.create_review(customer, 9999, order.id, rating=5)


async def test_create_review_marks_order_and_updates_rating(session, customer, make_category, make_product, place_order):
    """⭐ Отзыв сохраняет имя автора, ставит reviewSubmitted и пересчитывает рейтинг."""
    category = await make_category("Одежда")
    product = await make_product("Худи", category)
    order = await place_order(customer, product)

    review = await ReviewService(session).create_review(customer, product.id, order.id, rating=4, text="  Тёплое  ")

    assert review.author_name == "Иван"
    assert review.rating == 4
    assert review.text == "Тёплое"

    await session.refresh(order)
    await session.refresh(product)
    assert order.review_submitted is True
    assert product.num_reviews == 1
    assert product.rating == 4.0


async def test_author_name_falls_back_to_username(session, other_customer, make_category, make_product, place_order):
    category = await make_category("Одежда")
    product = await make_product("Худи", category)
    order = await place_order(other_customer, product)

    review = await ReviewService(session).create_review(other_customer, product.id, order.id, rating=5)
    assert review.author_name == "petr"


async def test_second_review_for_same_product_is_duplicate(session, customer, make_category, make_product, place_order):
    category = await make_category("Одежда")
    product = await make_product("Худи", category, stock=5)
    first_order = await place_order(customer, product)
    second_order = await place_order(customer, product)

    service = ReviewService(session)
    await service.create_review(customer, product.id, first_order.id, rating=5)

    with pytest.raises(DuplicateReviewError):
        await service.create_review(customer, product.id, second_order.id, rating=3)

    # Тот же заказ повторно
    with pytest.raises(DuplicateReviewError):
        await service.create_review(customer, product.id, first_order.id, rating=3)


async def test_delete_review_keeps_flag_and_recalculates(
    session, customer, other_customer, make_category, make_product, place_order
):
    category = await make_category("Одежда")
    product = await make_product("Худи", category, stock=5)
    order_a = await place_order(customer, product)
    order_b = await place_order(other_customer, product)

    service = ReviewService(session)
    review_a = await service.create_review(customer, product.id, order_a.id, rating=5)
    await service.create_review(other_customer, product.id, order_b.id, rating=2)

    await session.refresh(product)
    assert product.num_reviews == 2
    assert product.rating == 3.5

    review_a_id = review_a.id
    await service.delete_review(review_a_id)

    await session.refresh(product)
    await session.refresh(order_a)
    assert product.num_reviews == 1
    assert product.rating == 2.0
    assert order_a.review_submitted is True

    with pytest.raises(NotFoundError):
        await service.delete_review(review_a_id)


async def test_list_reviews_newest_first_with_authors(
    session, customer, other_customer, make_category, make_product, place_order
):
    category = await make_category("Одежда")
    product = await make_product("Худи", category, stock=5)
    service = ReviewService(session)

    first = await service.create_review(customer, product.id, (await place_order(customer, product)).id, rating=5)
    second = await service.create_review(
        other_customer, product.id, (await place_order(other_customer, product)).id, rating=4
    )

    views = await service.list_product_reviews(product.id)
    assert [v.review.id for v in views] == [second.id, first.id]
    assert views[0].author.username == "petr"

    all_views = await service.list_all_reviews()
    assert {v.product_name for v in all_views} == {"Худи"}
    assert len((await session.execute(select(Review.id))).all()) == 2


async def test_unique_constraint_race_is_duplicate(session, customer, make_category, make_product, place_order):
    """Отзыв на тот же товар появился между проверкой и записью: DuplicateReviewError, ничего не сохранено."""
    category = await make_category("Одежда")
    product = await make_product("Худи", category)
    order = await place_order(customer, product)
    customer_id, product_id, order_id = customer.id, product.id, order.id

    def insert_competing_review(sync_session, flush_context, instances):
        sync_session.connection().execute(
            insert(Review.__table__).values(
                user_id=customer_id,
                product_id=product_id,
                order_id=order_id,
                author_name="Иван",
                rating=1,
                text="",
            )
        )

    event.listen(session.sync_session, "before_flush", insert_competing_review, once=True)

    with pytest.raises(DuplicateReviewError):
        await ReviewService(session).create_review(customer, product_id, order_id, rating=5)

    assert (await session.execute(select(func.count(Review.id)))).scalar() == 0
    submitted = await session.execute(select(Order.review_submitted).where(Order.id == order_id))
    assert submitted.scalar_one() is False
