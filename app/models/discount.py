"""
Discount code model
"""

from sqlalchemy import Column, String, Integer, Boolean, Enum, ForeignKey, CheckConstraint, Uuid
import enum

from .base import Base, TimestampedModel, UUIDModel, SerializableModel

class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

class DiscountCode(Base, TimestampedModel, UUIDModel, SerializableModel):
    """Admin-issued code with a small usage budget"""

    __tablename__ = "discount_codes"

    code = Column(String(5), unique=True, nullable=False, index=True)
    discount_type = Column(Enum(DiscountType), nullable=False)
    discount_value = Column(Integer, nullable=False)

    usage_limit = Column(Integer, nullable=False, default=1)
    used_count = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        CheckConstraint("discount_value > 0", name="check_positive_discount"),
        CheckConstraint("usage_limit >= 1 AND usage_limit <= 10", name="check_usage_limit_range"),
        CheckConstraint("used_count >= 0", name="check_non_negative_used_count"),
    )

    @property
    def remaining_uses(self) -> int:
        return max(self.usage_limit - self.used_count, 0)

    def calculate_discount(self, subtotal: int) -> int:
        """
        Discount for a subtotal

        Percentages are capped at 100 and floored; fixed amounts never exceed the subtotal.
        """
        if self.discount_type == DiscountType.PERCENTAGE:
            return subtotal * min(self.discount_value, 100) // 100
        return min(self.discount_value, subtotal)
