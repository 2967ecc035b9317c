"""
Сервис отзывов.

Отзыв можно оставить только по собственному завершённому заказу,
содержащему товар; один отзыв на заказ и один отзыв на товар от пользователя.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import Order, OrderItem, Product, Review, User
from src.services.errors import (
    DuplicateReviewError,
    NotEligibleError,
    NotFoundError,
    ValidationError,
)
from src.services.orders import OrderStatus

logger = logging.getLogger(__name__)

ANONYMOUS_AUTHOR = "Аноним"


@dataclass
class ReviewView:
    """Отзыв с подгруженными автором и товаром."""

    review: Review
    author: Optional[User] = None
    product_name: Optional[str] = None


def validate_rating(rating: Any) -> int:
    """Рейтинг - целое число от 1 до 5 (допускается 4.0, но не 4.5)."""
    if rating is None or isinstance(rating, bool):
        raise ValidationError("Пожалуйста, укажите ID товара, ID заказа и рейтинг.")
    try:
        value = float(rating)
    except (TypeError, ValueError):
        raise ValidationError("Рейтинг должен быть от 1 до 5.")
    if not value.is_integer() or not 1 <= value <= 5:
        raise ValidationError("Рейтинг должен быть от 1 до 5.")
    return int(value)


class ReviewService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _users_by_id(self, user_ids: set[int]) -> dict[int, User]:
        if not user_ids:
            return {}
        result = await self.session.execute(select(User).where(User.id.in_(sorted(user_ids))))
        return {user.id: user for user in result.scalars().all()}

    async def create_review(
        self,
        author: User,
        product_id: Optional[int],
        order_id: Optional[int],
        rating: Any,
        text: Optional[str] = "",
    ) -> Review:
        """
        Проверки идут в порядке: товар, право на отзыв по заказу,
        оценка, повторный отзыв. Незавершённый заказ отклоняется
        независимо от переданной оценки.
        """
        if product_id is None or order_id is None:
            raise ValidationError("Пожалуйста, укажите ID товара, ID заказа и рейтинг.")

        if await self.session.get(Product, product_id) is None:
            raise NotFoundError("Товар не найден.")

        result = await self.session.execute(
            select(Order)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .where(
                Order.id == order_id,
                Order.user_id == author.id,
                Order.status == OrderStatus.COMPLETED.value,
                OrderItem.product_id == product_id,
            )
            .limit(1)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotEligibleError(
                "Невозможно оставить отзыв. Вы не покупали этот товар или заказ не завершен."
            )

        rating_value = validate_rating(rating)

        if order.review_submitted:
            raise DuplicateReviewError("Вы уже оставили отзыв для этого заказа.")

        existing = await self.session.execute(
            select(Review.id).where(Review.product_id == product_id, Review.user_id == author.id)
        )
        if existing.first() is not None:
            raise DuplicateReviewError("Вы уже оставляли отзыв на этот товар.")

        review = Review(
            user_id=author.id,
            author_name=author.display_name or ANONYMOUS_AUTHOR,
            product_id=product_id,
            order_id=order.id,
            rating=rating_value,
            text=(text or "").strip(),
        )
        self.session.add(review)
        order.review_submitted = True
        try:
            await self.session.flush()
        except IntegrityError:
            # Параллельный запрос успел создать отзыв на тот же товар
            # rollback экспирирует все объекты сессии, в том числе author
            await self.session.rollback()
            raise DuplicateReviewError("Вы уже оставляли отзыв на этот товар.")

        await self.recalculate_product_rating(product_id)
        await self.session.commit()

        logger.info(f"Пользователь {author.id} оставил отзыв {review.id} на товар {product_id} (оценка {rating_value})")
        return review

    async def recalculate_product_rating(self, product_id: int) -> tuple[float, int]:
        """Пересчитывает средний рейтинг и число отзывов товара. Не фиксирует транзакцию."""
        result = await self.session.execute(
            select(func.count(Review.id), func.avg(Review.rating)).where(Review.product_id == product_id)
        )
        num_reviews, average = result.one()
        rating = round(float(average), 2) if num_reviews else 0.0

        await self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(rating=rating, num_reviews=num_reviews or 0)
        )
        logger.info(f"Рейтинг товара {product_id} обновлён: {rating:.1f} ({num_reviews} отзывов)")
        return rating, num_reviews or 0

    async def list_product_reviews(self, product_id: int) -> list[ReviewView]:
        result = await self.session.execute(
            select(Review)
            .where(Review.product_id == product_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        reviews = list(result.scalars().all())
        authors = await self._users_by_id({review.user_id for review in reviews})
        return [ReviewView(review=review, author=authors.get(review.user_id)) for review in reviews]

    async def list_all_reviews(self) -> list[ReviewView]:
        """Все отзывы для админки, с автором и названием товара."""
        result = await self.session.execute(
            select(Review).order_by(Review.created_at.desc(), Review.id.desc())
        )
        reviews = list(result.scalars().all())
        authors = await self._users_by_id({review.user_id for review in reviews})

        product_names: dict[int, str] = {}
        product_ids = sorted({review.product_id for review in reviews})
        if product_ids:
            names = await self.session.execute(
                select(Product.id, Product.name).where(Product.id.in_(product_ids))
            )
            product_names = {row.id: row.name for row in names}

        return [
            ReviewView(
                review=review,
                author=authors.get(review.user_id),
                product_name=product_names.get(review.product_id),
            )
            for review in reviews
        ]

    async def delete_review(self, review_id: int) -> None:
        """Удаляет отзыв. Флаг review_submitted у заказа не сбрасывается."""
        review = await self.session.get(Review, review_id)
        if review is None:
            raise NotFoundError("Отзыв не найден.")
        product_id = review.product_id

        await self.session.execute(delete(Review).where(Review.id == review_id))
        await self.recalculate_product_rating(product_id)
        await self.session.commit()

        logger.info(f"Удалён отзыв {review_id} на товар {product_id}")
