"""Cart router: anonymous and authenticated carts share one set of endpoints"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.core.database import get_db
from app.models import Cart
from app.services.cart_resolver import CartContext
from app.services.cart_service import CartService
from .dependencies import get_cart, get_cart_context, resolve_cart
from .schemas import CartItemCreate, CartItemUpdate, CartResponse

router = APIRouter()

@router.get("", response_model=CartResponse)
async def read_cart(
    request: Request,
    context: CartContext = Depends(get_cart_context),
    db: AsyncSession = Depends(get_db)
):
    """Get cart; an empty representation when the caller has none yet"""
    cart = await resolve_cart(request, context, db, create=False)
    return CartResponse.from_cart(cart)

@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    item_data: CartItemCreate,
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db)
):
    """Add item to cart; quantities of an existing line accumulate"""
    cart = await CartService(db).add_item(cart, item_data.variant_id, item_data.quantity)
    return CartResponse.from_cart(cart)

@router.put("/items/{variant_id}", response_model=CartResponse)
async def update_cart_item(
    variant_id: uuid.UUID,
    update_data: CartItemUpdate,
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db)
):
    """Set the quantity of a line already in the cart"""
    cart = await CartService(db).update_item(cart, variant_id, update_data.quantity)
    return CartResponse.from_cart(cart)

@router.delete("/items/{variant_id}", response_model=CartResponse)
async def remove_from_cart(
    variant_id: uuid.UUID,
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db)
):
    """Remove item from cart"""
    cart = await CartService(db).remove_item(cart, variant_id)
    return CartResponse.from_cart(cart)

@router.delete("", response_model=CartResponse)
async def clear_cart(
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db)
):
    """Clear entire cart"""
    cart = await CartService(db).clear(cart)
    return CartResponse.from_cart(cart)
