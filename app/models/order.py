"""Order model, immutable line snapshots and the append-only status log"""

from sqlalchemy import Column, String, Integer, Enum, ForeignKey, Index, Text, DateTime, JSON, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from typing import Iterable, Optional
import enum

from app.utils.helpers import utcnow
from .base import Base, TimestampedModel, UUIDModel, SerializableModel

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

class PaymentMethod(str, enum.Enum):
    COD = "cod"
    PAYPAL = "paypal"
    CREDIT_CARD = "credit_card"

class Order(Base, TimestampedModel, UUIDModel, SerializableModel):
    """Checkout result; only payment_status changes after creation"""

    __tablename__ = "orders"

    order_number = Column(String(32), unique=True, nullable=False, index=True)

    # Customer; user_id is empty for guest checkout
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    shipping_address = Column(JSON, nullable=False)
    notes = Column(Text, nullable=True)

    # Payment
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)

    # Amounts, in the smallest currency unit
    subtotal = Column(Integer, nullable=False)
    shipping_fee = Column(Integer, nullable=False, default=0)
    tax = Column(Integer, nullable=False, default=0)
    discount_code = Column(String(20), nullable=True, index=True)
    discount_amount = Column(Integer, nullable=False, default=0)
    loyalty_points_used = Column(Integer, nullable=False, default=0)
    loyalty_points_earned = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False)

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    status_history = relationship(
        "OrderStatusEntry",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusEntry.created_at",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("total >= 0", name="check_order_non_negative_total"),
        Index("idx_orders_user_created", "user_id", "created_at"),
    )

    @property
    def status(self) -> Optional[OrderStatus]:
        return current_status(self.status_history)

class OrderItem(Base, UUIDModel):
    """Order line, frozen at checkout"""

    __tablename__ = "order_items"

    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    variant_id = Column(Uuid, ForeignKey("product_variants.id"), nullable=False)

    product_name = Column(String(255), nullable=False)
    variant_name = Column(String(255), nullable=False)
    sku = Column(String(100), nullable=True)
    unit_price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="check_positive_order_quantity"),
    )

class OrderStatusEntry(Base, UUIDModel):
    """Append-only status log row; the latest row is the order's status"""

    __tablename__ = "order_status_history"

    # Monotonic insertion key, breaks created_at ties
    seq = Column(Integer, nullable=False, default=0)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(OrderStatus), nullable=False, index=True)
    note = Column(Text, nullable=True)
    changed_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    order = relationship("Order", back_populates="status_history")

    __table_args__ = (
        Index("idx_order_status_order_created", "order_id", "created_at"),
    )

def latest_entry(history: Iterable[OrderStatusEntry]) -> Optional[OrderStatusEntry]:
    latest = None
    for entry in history:
        if latest is None or (entry.created_at, entry.seq) >= (latest.created_at, latest.seq):
            latest = entry
    return latest

def current_status(history: Iterable[OrderStatusEntry]) -> Optional[OrderStatus]:
    """Status of the most recent log entry, or None for an empty log"""
    entry = latest_entry(history)
    return entry.status if entry is not None else None
