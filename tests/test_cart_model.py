"""
Cart aggregate behaviour, without a database.

Covers:
- add accumulates quantity and keeps the last unit price
- update never creates a line
- remove is a no-op for unknown variants
- clear empties totals
- variant references compared by id whatever their form
"""

import uuid

import pytest

from app.core.exceptions import CartItemNotFoundException, ValidationException
from app.models import Cart, ProductVariant, cart_item_count, cart_total
from app.utils.helpers import to_uuid, utcnow

def make_cart() -> Cart:
    return Cart(session_id="sess-1", items=[])

class TestAddItem:
    def test_new_line(self):
        cart = make_cart()
        variant_id = uuid.uuid4()
        cart.add_item(variant_id, 2, 500)

        assert len(cart.items) == 1
        assert cart.items[0].variant_id == variant_id
        assert cart.items[0].quantity == 2
        assert cart.items[0].unit_price == 500

    def test_same_variant_accumulates_and_takes_last_price(self):
        cart = make_cart()
        variant_id = uuid.uuid4()
        cart.add_item(variant_id, 1, 500)
        cart.add_item(str(variant_id), 2, 450)
        cart.add_item(variant_id, 4, 480)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 7
        assert cart.items[0].unit_price == 480

    def test_model_instance_and_string_match_same_line(self):
        cart = make_cart()
        variant = ProductVariant(id=uuid.uuid4(), sku="A", name="A", price=100, inventory=5)
        cart.add_item(variant, 1, 100)
        cart.add_item(str(variant.id), 1, 100)

        assert len(cart.items) == 1
        assert cart.find_item(variant.id).quantity == 2

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_rejects_quantity_below_one(self, quantity):
        cart = make_cart()
        with pytest.raises(ValidationException):
            cart.add_item(uuid.uuid4(), quantity, 100)
        assert cart.items == []

    def test_positions_follow_insertion_order(self):
        cart = make_cart()
        first, second = uuid.uuid4(), uuid.uuid4()
        cart.add_item(first, 1, 100)
        cart.add_item(second, 1, 100)
        assert [item.position for item in cart.items] == [0, 1]

class TestUpdateAndRemove:
    def test_update_sets_quantity(self):
        cart = make_cart()
        variant_id = uuid.uuid4()
        cart.add_item(variant_id, 1, 100)
        cart.update_item(variant_id, 5)
        assert cart.items[0].quantity == 5

    def test_update_unknown_variant_never_upserts(self):
        cart = make_cart()
        with pytest.raises(CartItemNotFoundException):
            cart.update_item(uuid.uuid4(), 3)
        assert cart.items == []

    def test_update_rejects_zero(self):
        cart = make_cart()
        variant_id = uuid.uuid4()
        cart.add_item(variant_id, 1, 100)
        with pytest.raises(ValidationException):
            cart.update_item(variant_id, 0)
        assert cart.items[0].quantity == 1

    def test_remove_absent_is_noop(self):
        cart = make_cart()
        cart.add_item(uuid.uuid4(), 1, 100)
        assert cart.remove_item(uuid.uuid4()) is False
        assert len(cart.items) == 1

    def test_remove_present(self):
        cart = make_cart()
        variant_id = uuid.uuid4()
        cart.add_item(variant_id, 1, 100)
        assert cart.remove_item(str(variant_id)) is True
        assert cart.items == []

class TestDerivedTotals:
    def test_total_and_count(self):
        cart = make_cart()
        cart.add_item(uuid.uuid4(), 2, 500)
        cart.add_item(uuid.uuid4(), 3, 120)
        assert cart_total(cart.items) == 1360
        assert cart_item_count(cart.items) == 5

    def test_clear_resets_totals(self):
        cart = make_cart()
        cart.add_item(uuid.uuid4(), 2, 500)
        cart.add_item(uuid.uuid4(), 1, 999)
        cart.clear()
        assert cart_total(cart.items) == 0
        assert cart_item_count(cart.items) == 0

class TestIdentity:
    def test_transfer_clears_session_and_expiry(self):
        cart = make_cart()
        cart.refresh_expiry(30)
        user_id = uuid.uuid4()
        cart.transfer_to(str(user_id))

        assert cart.user_id == user_id
        assert cart.session_id is None
        assert cart.expires_at is None

    def test_refresh_expiry_only_for_anonymous(self):
        now = utcnow()
        anonymous = make_cart()
        anonymous.refresh_expiry(30, now=now)
        assert (anonymous.expires_at - now).days == 30

        owned = Cart(user_id=uuid.uuid4(), items=[])
        owned.refresh_expiry(30, now=now)
        assert owned.expires_at is None

    def test_to_uuid_rejects_unknown_reference(self):
        with pytest.raises(ValueError):
            to_uuid(42)
