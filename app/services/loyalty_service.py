"""
Loyalty points service
Points convert to currency at a fixed rate and are earned as a share of the order total
"""

from dataclasses import dataclass
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import update, case
import logging
import uuid

from app.core.config import settings
from app.core.exceptions import InsufficientPointsException, ValidationException
from app.models import User

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class LoyaltyQuote:
    """Outcome of redeeming points against an amount"""
    requested_points: int
    requested_value: int
    applied_value: int
    points_used: int
    remaining_points: int

    @property
    def points_value(self) -> int:
        return self.points_used * settings.LOYALTY_POINT_VALUE

def quote_redemption(balance: int, points: int, cap: int) -> LoyaltyQuote:
    """
    Work out how many points can actually be spent

    Args:
        balance: Points the user holds
        points: Points the user asked to redeem
        cap: Largest amount the points may cover (subtotal minus discount)

    Returns:
        LoyaltyQuote with whole points only

    Raises:
        InsufficientPointsException: If points exceed the balance
    """
    if points < 0:
        raise ValidationException("Loyalty points must not be negative")
    if points > balance:
        raise InsufficientPointsException(balance)

    requested_value = points * settings.LOYALTY_POINT_VALUE
    applied_value = min(requested_value, max(cap, 0))
    points_used = applied_value // settings.LOYALTY_POINT_VALUE

    return LoyaltyQuote(
        requested_points=points,
        requested_value=requested_value,
        applied_value=applied_value,
        points_used=points_used,
        remaining_points=balance - points_used,
    )

def points_earned(total: int) -> int:
    """Whole points earned on an order total"""
    return (total * settings.LOYALTY_EARN_PERCENT) // (100 * settings.LOYALTY_POINT_VALUE)

class LoyaltyService:
    """Point balance adjustments"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def adjust_points(self, user_id: uuid.UUID, delta: int) -> None:
        """
        Add delta (possibly negative) to a user's balance in SQL

        The balance is clamped at zero.
        """
        if delta == 0:
            return

        new_balance = User.loyalty_points + delta
        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(loyalty_points=case((new_balance < 0, 0), else_=new_balance))
            .execution_options(synchronize_session="fetch")
        )
        logger.info(f"Loyalty points of user {user_id} adjusted by {delta}")

    async def settle_order(self, user_id: uuid.UUID, points_used: int, points_credited: int) -> None:
        """Debit redeemed points and credit earned points for a placed order"""
        await self.adjust_points(user_id, points_credited - points_used)

    async def restore_points(self, user_id: uuid.UUID, points: int) -> None:
        """Give back points redeemed on a cancelled order"""
        await self.adjust_points(user_id, points)
