"""
Cart identity resolution

Maps a request's identity (optional user, anonymous session, remembered cart id)
to exactly one cart, repairing duplicate carts left behind by races or repeated logins.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, and_
import logging
import uuid

from app.core.config import settings
from app.core.exceptions import EmptyCartException
from app.models import Cart
from app.utils.helpers import utcnow

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class CartContext:
    """Identity of the request a cart is resolved for"""
    session_id: str
    user_id: Optional[uuid.UUID] = None
    remembered_cart_id: Optional[uuid.UUID] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

def pick_winner(candidates: Sequence[Cart], remembered_cart_id: Optional[uuid.UUID] = None) -> Optional[Cart]:
    """
    Choose the cart to keep

    Args:
        candidates: Carts for the identity, most recently created first
        remembered_cart_id: Cart id stored in the session by an earlier request

    Returns:
        The remembered cart if present, else the first cart with items,
        else the most recent cart; None when there are no candidates
    """
    if not candidates:
        return None

    if remembered_cart_id is not None:
        for cart in candidates:
            if cart.id == remembered_cart_id:
                return cart

    for cart in candidates:
        if cart.items:
            return cart

    return candidates[0]

class CartResolver:
    """Finds, repairs, transfers and lazily creates the cart for a request"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_candidates(self, context: CartContext) -> List[Cart]:
        """Carts owned by the user plus unexpired carts of the session, newest first"""
        now = utcnow()
        session_match = and_(
            Cart.session_id == context.session_id,
            or_(Cart.expires_at.is_(None), Cart.expires_at > now),
        )
        conditions = [session_match]
        if context.is_authenticated:
            conditions.append(Cart.user_id == context.user_id)

        result = await self.db.execute(
            select(Cart)
            .where(or_(*conditions))
            .order_by(Cart.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def resolve(
        self,
        context: CartContext,
        create: bool = True,
        require_items: bool = False
    ) -> Optional[Cart]:
        """
        Resolve the single cart for a request

        Args:
            context: Request identity
            create: Create a cart when none exists
            require_items: Reject an empty or missing cart (checkout)

        Returns:
            The cart, or None when nothing exists and create is False

        Raises:
            EmptyCartException: require_items and the cart has no items
        """
        candidates = await self.find_candidates(context)
        cart = pick_winner(candidates, context.remembered_cart_id)
        changed = False

        duplicates = [candidate for candidate in candidates if candidate is not cart]
        for duplicate in duplicates:
            await self.db.delete(duplicate)
        if duplicates:
            # Duplicates are flushed before the winner is touched
            await self.db.flush()
            changed = True
            logger.info(
                f"Removed {len(duplicates)} duplicate cart(s), kept {cart.id} "
                f"(user={context.user_id}, session={context.session_id})"
            )

        if cart is not None and context.is_authenticated and cart.user_id is None:
            cart.transfer_to(context.user_id)
            changed = True
            logger.info(f"Transferred cart {cart.id} from session to user {context.user_id}")

        if cart is None and create:
            cart = self._new_cart(context)
            self.db.add(cart)
            changed = True

        if changed:
            await self.db.commit()

        if require_items and (cart is None or not cart.items):
            raise EmptyCartException()

        return cart

    def _new_cart(self, context: CartContext) -> Cart:
        if context.is_authenticated:
            cart = Cart(user_id=context.user_id, session_id=None, items=[])
        else:
            cart = Cart(user_id=None, session_id=context.session_id, items=[])
            cart.refresh_expiry(settings.CART_EXPIRY_DAYS)
        logger.info(f"Created cart for user={context.user_id} session={context.session_id}")
        return cart
