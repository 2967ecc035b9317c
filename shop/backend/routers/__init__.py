# -*- coding: utf-8 -*-
"""
API роутеры магазина.

Содержит:
- auth: Вход через Telegram
- categories: Дерево категорий
- products: Каталог товаров
- orders: Заказы и складские остатки
- reviews: Отзывы
"""

from shop.backend.routers import auth, categories, orders, products, reviews

__all__ = [
    "auth",
    "categories",
    "orders",
    "products",
    "reviews",
]
