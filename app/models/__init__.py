"""Models package initialization"""

from .base import Base
from .user import User, UserRole
from .product import Product, ProductVariant, current_price
from .cart import Cart, CartItem, cart_total, cart_item_count
from .order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusEntry,
    PaymentMethod,
    PaymentStatus,
    current_status,
)
from .discount import DiscountCode, DiscountType

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Product",
    "ProductVariant",
    "current_price",
    "Cart",
    "CartItem",
    "cart_total",
    "cart_item_count",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderStatusEntry",
    "PaymentMethod",
    "PaymentStatus",
    "current_status",
    "DiscountCode",
    "DiscountType",
]
