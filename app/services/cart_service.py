"""
Cart service layer
Validates variants and live stock, then applies mutations to the cart aggregate
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging
import uuid

from app.core.config import settings
from app.core.exceptions import CartItemNotFoundException
from app.models import Cart, current_price
from app.utils.helpers import utcnow
from .inventory_service import InventoryService, ensure_available

logger = logging.getLogger(__name__)

class CartService:
    """Shopping cart service"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.inventory = InventoryService(db)

    async def add_item(self, cart: Cart, variant_id: uuid.UUID, quantity: int) -> Cart:
        """
        Add a variant at its current price

        Stock is checked against the quantity the line will hold afterwards.
        """
        variant = await self.inventory.get_purchasable_variant(variant_id, refresh=True)

        existing = cart.find_item(variant)
        requested = quantity + (existing.quantity if existing is not None else 0)
        ensure_available(variant, requested)

        cart.add_item(variant, quantity, current_price(variant))
        logger.info(f"Cart {cart.id}: added {quantity} x {variant.sku}")
        return await self._save(cart)

    async def update_item(self, cart: Cart, variant_id: uuid.UUID, quantity: int) -> Cart:
        """Set a line's quantity; the variant must already be in the cart"""
        if cart.find_item(variant_id) is None:
            raise CartItemNotFoundException()

        variant = await self.inventory.get_purchasable_variant(variant_id, refresh=True)
        ensure_available(variant, quantity)

        cart.update_item(variant, quantity)
        logger.info(f"Cart {cart.id}: {variant.sku} set to {quantity}")
        return await self._save(cart)

    async def remove_item(self, cart: Cart, variant_id: uuid.UUID) -> Cart:
        if cart.remove_item(variant_id):
            logger.info(f"Cart {cart.id}: removed variant {variant_id}")
        return await self._save(cart)

    async def clear(self, cart: Cart) -> Cart:
        cart.clear()
        return await self._save(cart)

    async def reload(self, cart_id: uuid.UUID) -> Cart:
        """Fresh copy of the cart and its lines"""
        result = await self.db.execute(
            select(Cart)
            .where(Cart.id == cart_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _save(self, cart: Cart) -> Cart:
        cart.refresh_expiry(settings.CART_EXPIRY_DAYS)
        cart.updated_at = utcnow()
        cart_id = cart.id
        await self.db.commit()
        return await self.reload(cart_id)
