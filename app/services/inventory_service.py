"""
Inventory service
Live stock checks and conditional decrements on product variants
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
import logging
import uuid

from app.models import ProductVariant
from app.core.exceptions import InsufficientStockException, NotFoundException

logger = logging.getLogger(__name__)

def ensure_available(variant: ProductVariant, quantity: int) -> None:
    """Raise when the variant cannot cover the requested quantity"""
    if variant.inventory < quantity:
        raise InsufficientStockException(variant.product.name, variant.name, variant.inventory)

class InventoryService:
    """Variant stock operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_variant(self, variant_id: uuid.UUID, refresh: bool = False) -> Optional[ProductVariant]:
        """
        Load a variant with its product

        Args:
            variant_id: Variant ID
            refresh: Overwrite any copy already in the session with the stored row

        Returns:
            The variant, or None
        """
        query = select(ProductVariant).where(ProductVariant.id == variant_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_purchasable_variant(self, variant_id: uuid.UUID, refresh: bool = False) -> ProductVariant:
        """Active variant of an active product, or 404"""
        variant = await self.get_variant(variant_id, refresh=refresh)
        if variant is None or not variant.is_active or not variant.product.is_active:
            raise NotFoundException("Product variant not found")
        return variant

    async def decrease(self, variant_id: uuid.UUID, quantity: int) -> None:
        """
        Take stock in one conditional UPDATE

        The row only changes while it still holds enough units, so inventory
        never drops below zero even when two checkouts race.
        """
        result = await self.db.execute(
            update(ProductVariant)
            .where(ProductVariant.id == variant_id, ProductVariant.inventory >= quantity)
            .values(inventory=ProductVariant.inventory - quantity)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            variant = await self.get_variant(variant_id, refresh=True)
            if variant is None:
                raise NotFoundException(f"Product variant {variant_id} not found")
            raise InsufficientStockException(variant.product.name, variant.name, variant.inventory)

        logger.info(f"Inventory of variant {variant_id} decreased by {quantity}")

    async def increase(self, variant_id: uuid.UUID, quantity: int) -> None:
        """Return stock, e.g. after a cancellation"""
        result = await self.db.execute(
            update(ProductVariant)
            .where(ProductVariant.id == variant_id)
            .values(inventory=ProductVariant.inventory + quantity)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            logger.warning(f"Variant {variant_id} no longer exists; {quantity} units not restocked")
            return

        logger.info(f"Inventory of variant {variant_id} increased by {quantity}")
