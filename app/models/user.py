"""
User model
Identity is issued by the auth provider; this table holds the storefront-side record
"""

from sqlalchemy import Column, String, Boolean, Integer, Enum, CheckConstraint
from sqlalchemy.orm import relationship
import enum

from .base import Base, TimestampedModel, UUIDModel, SerializableModel

class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"

class User(Base, TimestampedModel, UUIDModel, SerializableModel):
    """Storefront customer or admin"""

    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(Enum(UserRole), default=UserRole.CUSTOMER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Loyalty
    loyalty_points = Column(Integer, default=0, nullable=False)

    # Relationships
    carts = relationship("Cart", back_populates="user")
    orders = relationship("Order", back_populates="user")

    __table_args__ = (
        CheckConstraint("loyalty_points >= 0", name="check_non_negative_loyalty_points"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
