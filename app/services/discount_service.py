"""
Discount code service
Validation and consumption at checkout, plus admin management
"""

from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, case
import logging
import uuid

from app.models import DiscountCode, DiscountType, Order
from app.core.exceptions import (
    InvalidDiscountException,
    NotFoundException,
    ValidationException,
    DuplicateResourceException,
)
from app.utils.validators import normalize_discount_code, validate_discount_code
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

class DiscountService:
    """
    Service for discount code operations
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_code(self, code: str) -> Optional[DiscountCode]:
        result = await self.db.execute(
            select(DiscountCode).where(DiscountCode.code == normalize_discount_code(code))
        )
        return result.scalar_one_or_none()

    async def validate(self, code: str) -> DiscountCode:
        """
        Look up a code a shopper wants to use

        Raises:
            InvalidDiscountException: Unknown, inactive or used up
        """
        discount = await self.get_by_code(code)

        if discount is None or not discount.is_active:
            raise InvalidDiscountException("Invalid discount code")

        if discount.used_count >= discount.usage_limit:
            raise InvalidDiscountException("Discount code has reached its usage limit")

        return discount

    async def consume(self, discount: DiscountCode) -> None:
        """
        Mark one use in a single conditional UPDATE; the last use deactivates the code

        The row only changes while the code is active with uses left, so two
        checkouts racing for the last use cannot both count it.

        Raises:
            InvalidDiscountException: The code ran out after it was validated
        """
        next_count = DiscountCode.used_count + 1
        result = await self.db.execute(
            update(DiscountCode)
            .where(
                DiscountCode.id == discount.id,
                DiscountCode.is_active.is_(True),
                DiscountCode.used_count < DiscountCode.usage_limit,
            )
            .values(
                used_count=next_count,
                is_active=case((next_count >= DiscountCode.usage_limit, False), else_=DiscountCode.is_active),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise InvalidDiscountException("Discount code has reached its usage limit")

        await self.db.refresh(discount, ["used_count", "is_active"])
        if not discount.is_active:
            logger.info(f"Discount code {discount.code} exhausted and deactivated")

    async def preview(self, code: str, subtotal: int) -> Dict[str, Any]:
        """Discount a code would give on a subtotal, without consuming it"""
        discount = await self.validate(code)
        return {
            "code": discount.code,
            "discount_type": discount.discount_type,
            "discount_value": discount.discount_value,
            "discount_amount": discount.calculate_discount(subtotal),
            "remaining_uses": discount.remaining_uses,
        }

    # Admin operations

    async def list_codes(
        self,
        is_active: Optional[bool] = None,
        page: int = 1,
        size: int = 10
    ) -> Dict[str, Any]:
        query = select(DiscountCode).order_by(DiscountCode.created_at.desc())
        if is_active is not None:
            query = query.where(DiscountCode.is_active == is_active)
        return await paginate(self.db, query, page, size)

    async def create_code(
        self,
        code: str,
        discount_type: DiscountType,
        discount_value: int,
        usage_limit: int,
        created_by: Optional[uuid.UUID] = None
    ) -> DiscountCode:
        """
        Create a discount code

        Raises:
            ValidationException: Bad format or out-of-range values
            DuplicateResourceException: Code already exists
        """
        try:
            code = validate_discount_code(code)
        except ValueError as e:
            raise ValidationException(str(e))

        if discount_type == DiscountType.PERCENTAGE and not 1 <= discount_value <= 100:
            raise ValidationException("Percentage discount must be between 1 and 100")
        if discount_type == DiscountType.FIXED and discount_value <= 0:
            raise ValidationException("Fixed discount must be greater than 0")
        if not 1 <= usage_limit <= 10:
            raise ValidationException("Usage limit must be between 1 and 10")

        if await self.get_by_code(code) is not None:
            raise DuplicateResourceException("Discount code", "code", code)

        discount = DiscountCode(
            code=code,
            discount_type=discount_type,
            discount_value=discount_value,
            usage_limit=usage_limit,
            used_count=0,
            is_active=True,
            created_by=created_by,
        )
        self.db.add(discount)
        await self.db.commit()

        logger.info(f"Discount code {code} created by {created_by}")
        return discount

    async def get_code_detail(self, code: str) -> Dict[str, Any]:
        """Code plus the orders that used it"""
        discount = await self._get_or_404(code)
        result = await self.db.execute(
            select(Order)
            .where(Order.discount_code == discount.code)
            .order_by(Order.created_at.desc())
        )
        return {"discount": discount, "orders": result.scalars().all()}

    async def delete_code(self, code: str) -> Dict[str, Any]:
        """
        Delete an unused code; a code already used is only deactivated
        so historical orders keep their reference
        """
        discount = await self._get_or_404(code)

        used = await self.db.scalar(
            select(func.count()).select_from(Order).where(Order.discount_code == discount.code)
        )
        if discount.used_count > 0 or used:
            discount.is_active = False
            await self.db.commit()
            logger.info(f"Discount code {discount.code} deactivated instead of deleted")
            return {"code": discount.code, "deleted": False, "deactivated": True}

        await self.db.delete(discount)
        await self.db.commit()
        logger.info(f"Discount code {discount.code} deleted")
        return {"code": discount.code, "deleted": True, "deactivated": False}

    async def toggle_code(self, code: str) -> DiscountCode:
        discount = await self._get_or_404(code)
        discount.is_active = not discount.is_active
        await self.db.commit()
        return discount

    async def _get_or_404(self, code: str) -> DiscountCode:
        discount = await self.get_by_code(code)
        if discount is None:
            raise NotFoundException("Discount code not found")
        return discount
