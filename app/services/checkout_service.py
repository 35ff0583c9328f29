"""
Checkout orchestration

Turns a resolved, non-empty cart into an order. Everything up to and including
persisting the order is validated first and committed once; the follow-up
writes (points, inventory, cart) run afterwards as independent steps.
"""

from dataclasses import dataclass
from typing import Any, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging
import uuid

from app.core.config import settings
from app.core.exceptions import (
    EmptyCartException,
    InternalServerException,
    ItemUnavailableException,
    NotFoundException,
    ValidationException,
)
from app.models import (
    Cart,
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusEntry,
    PaymentMethod,
    ProductVariant,
    User,
)
from app.utils.helpers import generate_order_number, utcnow
from .discount_service import DiscountService
from .inventory_service import InventoryService, ensure_available
from .loyalty_service import LoyaltyService, quote_redemption, points_earned
from .notification_service import NotificationService
from .post_commit import run_post_commit_step

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 5

@dataclass
class CheckoutRequest:
    """Shopper input for placing an order"""
    shipping_address: dict
    payment_method: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    discount_code: Optional[str] = None
    loyalty_points_used: int = 0
    notes: Optional[str] = None

def compute_order_total(
    subtotal: int,
    shipping_fee: int,
    tax: int,
    discount_amount: int,
    points_used: int
) -> int:
    """subtotal + shipping + tax - discount - redeemed points value"""
    return subtotal + shipping_fee + tax - discount_amount - points_used * settings.LOYALTY_POINT_VALUE

class CheckoutService:
    """Places orders from carts"""

    def __init__(self, db: AsyncSession, notifications: Optional[NotificationService] = None):
        self.db = db
        self.discounts = DiscountService(db)
        self.inventory = InventoryService(db)
        self.loyalty = LoyaltyService(db)
        self.notifications = notifications or NotificationService()

    async def place_order(
        self,
        cart: Cart,
        data: CheckoutRequest,
        user: Optional[User] = None
    ) -> Order:
        """
        Create an order from the cart

        Args:
            cart: Resolved cart of the requester
            data: Checkout details
            user: Authenticated user, None for guest checkout

        Returns:
            The created order with items and status history loaded

        Raises:
            EmptyCartException: Cart has no items
            ValidationException: Guest checkout without email
            ItemUnavailableException: A line's variant or product is no longer on sale
            InsufficientStockException: A line exceeds live inventory
            InvalidDiscountException: Unusable discount code
            InsufficientPointsException: More points requested than held
        """
        if not cart.items:
            raise EmptyCartException()

        email = user.email if user is not None else data.email
        if not email:
            raise ValidationException("Email is required for guest checkout")

        # Live stock for every line, before anything is written
        lines: List[tuple] = []
        for item in cart.items:
            try:
                variant = await self.inventory.get_purchasable_variant(item.variant_id, refresh=True)
            except NotFoundException:
                if item.variant is None:
                    raise ItemUnavailableException("Product", str(item.variant_id))
                raise ItemUnavailableException(item.variant.product.name, item.variant.name)
            ensure_available(variant, item.quantity)
            lines.append((item, variant))

        order_items = [self._snapshot(item, variant) for item, variant in lines]
        subtotal = sum(order_item.total_price for order_item in order_items)

        discount = None
        discount_amount = 0
        if data.discount_code:
            discount = await self.discounts.validate(data.discount_code)
            discount_amount = discount.calculate_discount(subtotal)

        points_used = 0
        if user is not None and data.loyalty_points_used:
            quote = quote_redemption(user.loyalty_points, data.loyalty_points_used, subtotal - discount_amount)
            points_used = quote.points_used

        shipping_fee = settings.DEFAULT_SHIPPING_FEE
        tax = settings.DEFAULT_TAX
        total = compute_order_total(subtotal, shipping_fee, tax, discount_amount, points_used)
        earned = points_earned(total) if user is not None else 0

        # Validation done; from here on the order is written
        if discount is not None:
            await self.discounts.consume(discount)

        order = Order(
            order_number=await self._unique_order_number(),
            user_id=user.id if user is not None else None,
            email=email,
            full_name=data.full_name,
            phone=data.phone,
            shipping_address=data.shipping_address,
            notes=data.notes,
            payment_method=PaymentMethod(data.payment_method),
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            tax=tax,
            discount_code=discount.code if discount is not None else None,
            discount_amount=discount_amount,
            loyalty_points_used=points_used,
            loyalty_points_earned=earned,
            total=total,
            items=order_items,
        )
        order.status_history.append(
            OrderStatusEntry(
                status=OrderStatus.PENDING,
                note="Order placed successfully",
                changed_by=user.id if user is not None else None,
                seq=0,
                created_at=utcnow(),
            )
        )
        self.db.add(order)
        await self.db.commit()

        order_id = order.id
        order_number = order.order_number
        cart_id = cart.id
        quantities = [(variant.id, item.quantity) for item, variant in lines]
        logger.info(f"Order {order_number} placed: total={total} items={len(order_items)}")

        if user is not None:
            user_id = user.id
            await run_post_commit_step(
                self.db, f"order {order_number}: loyalty points",
                lambda: self.loyalty.settle_order(user_id, points_used, earned)
            )

        for variant_id, quantity in quantities:
            await run_post_commit_step(
                self.db, f"order {order_number}: inventory of variant {variant_id}",
                lambda variant_id=variant_id, quantity=quantity: self.inventory.decrease(variant_id, quantity)
            )

        await run_post_commit_step(
            self.db, f"order {order_number}: clear cart {cart_id}",
            lambda: self._clear_cart(cart_id)
        )

        self.notifications.order_placed(order_id)

        return await self.get_order(order_id)

    async def get_order(self, order_id: uuid.UUID) -> Order:
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    def _snapshot(self, item: Any, variant: ProductVariant) -> OrderItem:
        """Freeze names and the cart's unit price into an order line"""
        return OrderItem(
            variant_id=variant.id,
            product_name=variant.product.name,
            variant_name=variant.name,
            sku=variant.sku,
            unit_price=item.unit_price,
            quantity=item.quantity,
            total_price=item.unit_price * item.quantity,
        )

    async def _unique_order_number(self) -> str:
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            number = generate_order_number()
            exists = await self.db.scalar(select(Order.id).where(Order.order_number == number))
            if exists is None:
                return number
        raise InternalServerException("Could not allocate an order number")

    async def _clear_cart(self, cart_id: uuid.UUID) -> None:
        result = await self.db.execute(
            select(Cart)
            .where(Cart.id == cart_id)
            .execution_options(populate_existing=True)
        )
        cart = result.scalar_one_or_none()
        if cart is not None:
            cart.clear()
