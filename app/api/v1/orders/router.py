"""
Order API routes
Checkout and discount preview for every visitor, order history for signed-in users
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import datetime
import uuid

from app.api.v1.auth.dependencies import get_current_user, get_current_user_optional
from app.api.v1.cart.dependencies import get_cart_context, resolve_cart
from app.core.database import get_db
from app.middleware.rate_limit import checkout_limit
from app.models import User, cart_total
from app.models.order import OrderStatus
from app.services.cart_resolver import CartContext
from app.services.checkout_service import CheckoutRequest, CheckoutService
from app.services.discount_service import DiscountService
from app.services.loyalty_service import quote_redemption
from app.utils.dependencies import get_pagination_params
from app.utils.pagination import PaginationParams
from .schemas import (
    LoyaltyQuoteRequest,
    LoyaltyQuoteResponse,
    OrderCancelRequest,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderTrackingResponse,
    VerifyDiscountRequest,
    VerifyDiscountResponse,
)
from .services import OrderService

router = APIRouter()

@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place order",
    description="Check out the caller's cart"
)
@checkout_limit
async def create_order(
    request: Request,
    order_data: OrderCreate,
    context: CartContext = Depends(get_cart_context),
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db)
):
    """Create an order from the resolved cart"""
    cart = await resolve_cart(request, context, db, require_items=True)

    address = order_data.shipping_address
    checkout = CheckoutRequest(
        shipping_address=address.model_dump(),
        payment_method=order_data.payment_method.value,
        full_name=address.full_name,
        email=order_data.email,
        phone=address.phone,
        discount_code=order_data.discount_code,
        loyalty_points_used=order_data.loyalty_points_used,
        notes=order_data.notes,
    )
    return await CheckoutService(db).place_order(cart, checkout, user=current_user)

@router.post("/verify-discount", response_model=VerifyDiscountResponse)
async def verify_discount(
    request: Request,
    data: VerifyDiscountRequest,
    context: CartContext = Depends(get_cart_context),
    db: AsyncSession = Depends(get_db)
):
    """Preview a discount code against the current cart without using it"""
    cart = await resolve_cart(request, context, db, create=False)
    subtotal = cart_total(cart.items) if cart is not None else 0

    preview = await DiscountService(db).preview(data.code, subtotal)
    return VerifyDiscountResponse(subtotal=subtotal, **preview)

@router.post("/user/loyalty-points/quote", response_model=LoyaltyQuoteResponse)
async def quote_loyalty_points(
    request: Request,
    data: LoyaltyQuoteRequest,
    context: CartContext = Depends(get_cart_context),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """How many points would apply to the given subtotal, or to the current cart"""
    subtotal = data.subtotal
    if subtotal is None:
        cart = await resolve_cart(request, context, db, create=False)
        subtotal = cart_total(cart.items) if cart is not None else 0

    quote = quote_redemption(current_user.loyalty_points, data.points, subtotal)
    return LoyaltyQuoteResponse(
        requested_points=quote.requested_points,
        requested_value=quote.requested_value,
        applied_value=quote.applied_value,
        points_used=quote.points_used,
        points_value=quote.points_value,
        remaining_points=quote.remaining_points,
    )

@router.get("/user", response_model=OrderListResponse)
async def list_my_orders(
    status: Optional[OrderStatus] = Query(None, description="Current order status"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Orders of the signed-in user, newest first"""
    return await OrderService(db).list_user_orders(
        current_user.id,
        status=status,
        start_date=start_date,
        end_date=end_date,
        page=pagination.page,
        size=pagination.size
    )

@router.get("/user/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await OrderService(db).get_order(order_id, user_id=current_user.id)

@router.get("/user/{order_id}/tracking", response_model=OrderTrackingResponse)
async def track_my_order(
    order_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Current status and status history"""
    return await OrderService(db).get_order_tracking(order_id, current_user.id)

@router.post("/user/{order_id}/cancel", response_model=OrderResponse)
async def cancel_my_order(
    order_id: uuid.UUID,
    data: Optional[OrderCancelRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Cancel an order that has not been processed yet"""
    reason = data.reason if data is not None else None
    return await OrderService(db).cancel_order(order_id, current_user.id, reason)
