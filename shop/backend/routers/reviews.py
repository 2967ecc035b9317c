# -*- coding: utf-8 -*-
"""
API роутер отзывов.

Эндпоинты:
- POST / - Оставить отзыв по завершённому заказу
- GET /?productId=... - Отзывы товара (публично)
- GET / - Все отзывы (админ)
- DELETE /{review_id} - Удалить отзыв (админ)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shop.backend.auth.dependencies import (
    ensure_admin,
    get_current_user,
    get_optional_user,
    require_admin,
)
from shop.backend.models.base import MessageResponse, UserBrief
from shop.backend.models.review import ReviewCreate, ReviewResponse
from src.db.models import User
from src.db.session import get_db_session
from src.services.reviews import ReviewService, ReviewView

router = APIRouter()
logger = logging.getLogger(__name__)


def review_to_response(view: ReviewView) -> ReviewResponse:
    response = ReviewResponse.model_validate(view.review)
    if view.author is not None:
        response.user = UserBrief.model_validate(view.author)
    response.product_name = view.product_name
    return response


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    review = await ReviewService(db).create_review(
        current_user,
        product_id=data.product_id,
        order_id=data.order_id,
        rating=data.rating,
        text=data.text,
    )
    return review_to_response(ReviewView(review=review, author=current_user))


@router.get("/", response_model=List[ReviewResponse])
async def list_reviews(
    product_id: Optional[int] = Query(None, alias="productId", description="ID товара"),
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    """
    С productId - публичный список отзывов товара,
    без него - все отзывы, только для администратора.
    """
    service = ReviewService(db)
    if product_id is not None:
        views = await service.list_product_reviews(product_id)
    else:
        if current_user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Не авторизован, токен отсутствует или невалиден",
                headers={"WWW-Authenticate": "Bearer"},
            )
        ensure_admin(current_user)
        views = await service.list_all_reviews()

    return [review_to_response(view) for view in views]


@router.delete("/{review_id}", response_model=MessageResponse)
async def delete_review(
    review_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    await ReviewService(db).delete_review(review_id)
    logger.info(f"Администратор {admin.id} удалил отзыв {review_id}")
    return MessageResponse(message="Отзыв успешно удален.")
