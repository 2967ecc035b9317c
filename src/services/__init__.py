"""Service layer helpers for business logic."""

from .category_tree import CascadeResult, CategoryTreeService
from .orders import OrderLineRequest, OrderService, OrderStatus
from .products import ProductPage, ProductService
from .reviews import ReviewService
from .users import UserService

__all__ = [
    "CascadeResult",
    "CategoryTreeService",
    "OrderLineRequest",
    "OrderService",
    "OrderStatus",
    "ProductPage",
    "ProductService",
    "ReviewService",
    "UserService",
]
