"""
Shopping cart model
One cart per identity: an authenticated user or an anonymous browser session
"""

from sqlalchemy import Column, String, Integer, ForeignKey, Index, CheckConstraint, DateTime, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.ext.orderinglist import ordering_list
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from app.core.exceptions import CartItemNotFoundException, ValidationException
from app.utils.helpers import utcnow, to_uuid
from .base import Base, TimestampedModel, UUIDModel, SerializableModel

class CartItem(Base, UUIDModel):
    """Line item: one per variant, price captured when last added"""

    __tablename__ = "cart_items"

    cart_id = Column(Uuid, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    variant_id = Column(Uuid, ForeignKey("product_variants.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Integer, nullable=False)
    added_at = Column(DateTime, nullable=False, default=utcnow)
    position = Column(Integer, nullable=False, default=0)

    cart = relationship("Cart", back_populates="items")
    variant = relationship("ProductVariant", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="check_positive_cart_quantity"),
        Index("idx_cart_items_cart_variant", "cart_id", "variant_id"),
    )

class Cart(Base, TimestampedModel, UUIDModel, SerializableModel):
    """Cart aggregate; all item mutation goes through its methods"""

    __tablename__ = "carts"

    user_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    session_id = Column(String(64), nullable=True, index=True)

    # Anonymous carts only; cleared on transfer to a user
    expires_at = Column(DateTime, nullable=True, index=True)

    items = relationship(
        "CartItem",
        back_populates="cart",
        order_by="CartItem.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    user = relationship("User", back_populates="carts")

    __table_args__ = (
        CheckConstraint("(user_id IS NOT NULL) OR (session_id IS NOT NULL)", name="check_cart_user_or_session"),
    )

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    def find_item(self, variant: Any) -> Optional[CartItem]:
        """Line for the variant, matched by id whatever form the reference takes"""
        key = to_uuid(variant)
        for item in self.items:
            if to_uuid(item.variant_id) == key:
                return item
        return None

    def add_item(self, variant: Any, quantity: int, unit_price: int) -> CartItem:
        """
        Add quantity of a variant

        An existing line accumulates quantity and takes the new unit price.
        """
        if quantity < 1:
            raise ValidationException("Quantity must be at least 1")

        item = self.find_item(variant)
        if item is not None:
            item.quantity += quantity
            item.unit_price = unit_price
            return item

        item = CartItem(
            variant_id=to_uuid(variant),
            quantity=quantity,
            unit_price=unit_price,
            added_at=utcnow(),
        )
        self.items.append(item)
        return item

    def update_item(self, variant: Any, quantity: int) -> CartItem:
        """Set the quantity of an existing line; never creates one"""
        if quantity < 1:
            raise ValidationException("Quantity must be at least 1")

        item = self.find_item(variant)
        if item is None:
            raise CartItemNotFoundException()

        item.quantity = quantity
        return item

    def remove_item(self, variant: Any) -> bool:
        """Drop the line for a variant; returns False when there was none"""
        item = self.find_item(variant)
        if item is None:
            return False
        self.items.remove(item)
        return True

    def clear(self) -> None:
        del self.items[:]

    def transfer_to(self, user_id: Any) -> None:
        """Re-own an anonymous cart to an authenticated user"""
        self.user_id = to_uuid(user_id)
        self.session_id = None
        self.expires_at = None

    def refresh_expiry(self, days: int, now: Optional[datetime] = None) -> None:
        """Push the anonymous-cart expiry out from now"""
        if self.is_anonymous:
            self.expires_at = (now or utcnow()) + timedelta(days=days)

def cart_total(items: Iterable[CartItem]) -> int:
    return sum(item.unit_price * item.quantity for item in items)

def cart_item_count(items: Iterable[CartItem]) -> int:
    return sum(item.quantity for item in items)
