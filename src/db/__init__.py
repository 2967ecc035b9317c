"""Database package: async engine, models, and session utilities."""

from .session import async_engine, async_session_factory, get_db_session
from .models import Base, Category, Order, OrderItem, Product, Review, User

__all__ = [
    "async_engine",
    "async_session_factory",
    "get_db_session",
    "Base",
    "Category",
    "Order",
    "OrderItem",
    "Product",
    "Review",
    "User",
]
