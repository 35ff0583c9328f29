"""
Cart request dependencies
Builds the request identity and resolves it to a cart
"""

from typing import Optional
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.api.v1.auth.dependencies import get_current_user_optional
from app.core.database import get_db
from app.models import Cart, User
from app.services.cart_resolver import CartContext, CartResolver
from app.utils.dependencies import get_session_id

def get_cart_context(
    request: Request,
    session_id: str = Depends(get_session_id),
    current_user: Optional[User] = Depends(get_current_user_optional)
) -> CartContext:
    """Identity of the caller: optional user, session and the cart id remembered in the session"""
    remembered = request.session.get("cart_id")
    try:
        remembered_cart_id = uuid.UUID(remembered) if remembered else None
    except (TypeError, ValueError):
        remembered_cart_id = None

    return CartContext(
        session_id=session_id,
        user_id=current_user.id if current_user else None,
        remembered_cart_id=remembered_cart_id,
    )

def remember_cart(request: Request, cart: Optional[Cart]) -> None:
    """Store the resolved cart id in session state"""
    if cart is not None:
        request.session["cart_id"] = str(cart.id)

async def resolve_cart(
    request: Request,
    context: CartContext,
    db: AsyncSession,
    create: bool = True,
    require_items: bool = False
) -> Optional[Cart]:
    cart = await CartResolver(db).resolve(context, create=create, require_items=require_items)
    remember_cart(request, cart)
    return cart

async def get_cart(
    request: Request,
    context: CartContext = Depends(get_cart_context),
    db: AsyncSession = Depends(get_db)
) -> Cart:
    """Cart for the caller, created on first use"""
    return await resolve_cart(request, context, db)
