"""
Cart identity resolution against a real session.

Covers:
- lazy creation for sessions and users
- duplicate repair: remembered cart, then first with items, then newest
- session cart transferred on login
- expired session carts ignored
- checkout requires items
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.core.exceptions import EmptyCartException
from app.models import Cart
from app.services.cart_resolver import CartContext, CartResolver, pick_winner
from app.utils.helpers import utcnow
from conftest import create_user, create_variant

async def count_carts(db) -> int:
    return await db.scalar(select(func.count()).select_from(Cart))

async def add_cart(db, created_offset_minutes=0, **kwargs) -> Cart:
    cart = Cart(items=[], created_at=utcnow() + timedelta(minutes=created_offset_minutes), **kwargs)
    db.add(cart)
    await db.commit()
    return cart

class TestCreate:
    async def test_creates_session_cart_with_expiry(self, db):
        cart = await CartResolver(db).resolve(CartContext(session_id="s1"))
        assert cart.session_id == "s1"
        assert cart.user_id is None
        assert cart.expires_at > utcnow() + timedelta(days=29)

    async def test_creates_user_cart_without_expiry(self, db, session_factory):
        user = await create_user(session_factory)
        cart = await CartResolver(db).resolve(CartContext(session_id="s1", user_id=user.id))
        assert cart.user_id == user.id
        assert cart.session_id is None
        assert cart.expires_at is None

    async def test_no_create(self, db):
        assert await CartResolver(db).resolve(CartContext(session_id="s1"), create=False) is None
        assert await count_carts(db) == 0

    async def test_existing_cart_reused(self, db):
        resolver = CartResolver(db)
        first = await resolver.resolve(CartContext(session_id="s1"))
        second = await resolver.resolve(CartContext(session_id="s1"))
        assert first.id == second.id
        assert await count_carts(db) == 1

class TestDuplicateRepair:
    async def test_cart_with_items_beats_newer_empty_cart(self, db, session_factory):
        variant = await create_variant(session_factory)
        older = await add_cart(db, -10, session_id="s1", expires_at=utcnow() + timedelta(days=1))
        older.add_item(variant.id, 1, 500)
        await db.commit()
        await add_cart(db, 0, session_id="s1", expires_at=utcnow() + timedelta(days=1))

        cart = await CartResolver(db).resolve(CartContext(session_id="s1"))

        assert cart.id == older.id
        assert await count_carts(db) == 1

    async def test_newest_wins_when_all_empty(self, db):
        await add_cart(db, -10, session_id="s1", expires_at=utcnow() + timedelta(days=1))
        newest = await add_cart(db, 0, session_id="s1", expires_at=utcnow() + timedelta(days=1))
        await add_cart(db, -5, session_id="s1", expires_at=utcnow() + timedelta(days=1))

        cart = await CartResolver(db).resolve(CartContext(session_id="s1"))

        assert cart.id == newest.id
        assert await count_carts(db) == 1

    async def test_remembered_cart_wins(self, db, session_factory):
        variant = await create_variant(session_factory)
        with_items = await add_cart(db, 0, session_id="s1", expires_at=utcnow() + timedelta(days=1))
        with_items.add_item(variant.id, 1, 500)
        await db.commit()
        remembered = await add_cart(db, -10, session_id="s1", expires_at=utcnow() + timedelta(days=1))

        cart = await CartResolver(db).resolve(
            CartContext(session_id="s1", remembered_cart_id=remembered.id)
        )

        assert cart.id == remembered.id
        assert await count_carts(db) == 1

class TestTransfer:
    async def test_session_cart_moves_to_user(self, db, session_factory):
        user = await create_user(session_factory)
        variant = await create_variant(session_factory)
        guest = await add_cart(db, 0, session_id="s1", expires_at=utcnow() + timedelta(days=1))
        guest.add_item(variant.id, 2, 500)
        await db.commit()

        cart = await CartResolver(db).resolve(CartContext(session_id="s1", user_id=user.id))

        assert cart.id == guest.id
        assert cart.user_id == user.id
        assert cart.session_id is None
        assert cart.expires_at is None
        assert len(cart.items) == 1

    async def test_user_cart_and_session_cart_collapse(self, db, session_factory):
        user = await create_user(session_factory)
        variant = await create_variant(session_factory)
        await add_cart(db, -10, user_id=user.id)
        guest = await add_cart(db, 0, session_id="s1", expires_at=utcnow() + timedelta(days=1))
        guest.add_item(variant.id, 1, 500)
        await db.commit()

        cart = await CartResolver(db).resolve(CartContext(session_id="s1", user_id=user.id))

        assert cart.id == guest.id
        assert cart.user_id == user.id
        assert await count_carts(db) == 1

class TestExpiry:
    async def test_expired_session_cart_ignored(self, db):
        expired = await add_cart(db, -60, session_id="s1", expires_at=utcnow() - timedelta(minutes=1))
        cart = await CartResolver(db).resolve(CartContext(session_id="s1"))
        assert cart.id != expired.id

class TestRequireItems:
    async def test_missing_cart(self, db):
        with pytest.raises(EmptyCartException) as exc_info:
            await CartResolver(db).resolve(CartContext(session_id="s1"), create=False, require_items=True)
        assert exc_info.value.detail == "Your cart is empty. Please add items before checking out."

    async def test_empty_cart(self, db):
        await add_cart(db, 0, session_id="s1", expires_at=utcnow() + timedelta(days=1))
        with pytest.raises(EmptyCartException):
            await CartResolver(db).resolve(CartContext(session_id="s1"), require_items=True)

def test_pick_winner_without_candidates():
    assert pick_winner([]) is None
