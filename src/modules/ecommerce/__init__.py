from src.modules.ecommerce.models import (
    Address,
    Cart,
    CartItem,
    Order,
    OrderLine,
    OrderMessage,
    OrderStatus,
    Product,
    WishlistItem,
)
from src.modules.ecommerce.router import catalog_router, orders_router, router

__all__ = [
    "Product",
    "Cart",
    "CartItem",
    "Order",
    "OrderLine",
    "OrderStatus",
    "OrderMessage",
    "WishlistItem",
    "Address",
    "router",
    "catalog_router",
    "orders_router",
]
