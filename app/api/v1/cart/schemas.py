"""
Cart schemas for request/response validation
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
import uuid

from app.models import Cart, CartItem, cart_item_count, cart_total

class CartItemCreate(BaseModel):
    """Schema for adding item to cart"""
    variant_id: uuid.UUID
    quantity: int = Field(1, ge=1)

class CartItemUpdate(BaseModel):
    """Schema for updating cart item"""
    quantity: int = Field(..., ge=1)

class CartItemResponse(BaseModel):
    """Schema for cart item response"""
    variant_id: uuid.UUID
    product_name: str
    variant_name: str
    sku: str
    quantity: int
    unit_price: int
    line_total: int
    in_stock: bool
    added_at: datetime

    @classmethod
    def from_item(cls, item: CartItem) -> "CartItemResponse":
        variant = item.variant
        return cls(
            variant_id=item.variant_id,
            product_name=variant.product.name,
            variant_name=variant.name,
            sku=variant.sku,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=item.unit_price * item.quantity,
            in_stock=variant.is_active and variant.inventory >= item.quantity,
            added_at=item.added_at,
        )

class CartResponse(BaseModel):
    """Schema for complete cart response"""
    id: Optional[uuid.UUID] = None
    items: List[CartItemResponse] = []
    item_count: int = 0
    total: int = 0
    expires_at: Optional[datetime] = None

    @classmethod
    def from_cart(cls, cart: Optional[Cart]) -> "CartResponse":
        if cart is None:
            return cls()
        return cls(
            id=cart.id,
            items=[CartItemResponse.from_item(item) for item in cart.items],
            item_count=cart_item_count(cart.items),
            total=cart_total(cart.items),
            expires_at=cart.expires_at,
        )
