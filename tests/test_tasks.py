"""
Background work: guest cart purge and order emails.
"""

from datetime import timedelta
import uuid

import aiosmtplib
import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.models import Base, Cart, CartItem, Order, OrderItem, PaymentMethod
from app.services.email_service import EmailService
from app.tasks.cart_tasks import delete_expired_guest_carts
from app.tasks.email_tasks import build_order_data
from app.utils.helpers import utcnow

@pytest.fixture
def sync_db():
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()

class TestPurgeExpiredGuestCarts:
    def test_only_expired_guest_carts_removed(self, sync_db):
        now = utcnow()
        expired = Cart(session_id="old", expires_at=now - timedelta(days=1), items=[])
        expired.add_item(uuid.uuid4(), 1, 100)
        live = Cart(session_id="new", expires_at=now + timedelta(days=1), items=[])
        owned = Cart(user_id=uuid.uuid4(), items=[])
        sync_db.add_all([expired, live, owned])
        sync_db.commit()

        deleted = delete_expired_guest_carts(sync_db, now=now)
        sync_db.commit()

        assert deleted == 1
        remaining = set(sync_db.scalars(select(Cart.session_id)))
        assert remaining == {"new", None}
        assert sync_db.scalar(select(func.count()).select_from(CartItem)) == 0

    def test_nothing_to_purge(self, sync_db):
        assert delete_expired_guest_carts(sync_db) == 0

ORDER_DATA = {
    "id": str(uuid.uuid4()),
    "order_number": "ORD-20240101-AB12",
    "created_at": "2024-01-01 10:00",
    "full_name": "Test Buyer",
    "subtotal": 1000,
    "shipping_fee": 35000,
    "tax": 0,
    "discount_code": None,
    "discount_amount": 0,
    "loyalty_points_used": 0,
    "loyalty_points_earned": 3,
    "total": 36000,
    "payment_method": "cod",
    "shipping_address": {"full_name": "Test Buyer", "address_line1": "12 Market Street", "city": "Hanoi"},
    "items": [
        {"product_name": "Cotton Tee", "variant_name": "Red / M", "quantity": 2, "unit_price": 500, "total_price": 1000}
    ],
}

class TestEmailService:
    def test_confirmation_template(self):
        html = EmailService().render("order_confirmation.html", order=ORDER_DATA, track_url="http://x/orders/1")
        assert "ORD-20240101-AB12" in html
        assert "Cotton Tee - Red / M" in html
        assert "36,000" in html

    def test_status_template(self):
        html = EmailService().render(
            "order_status_update.html", order=ORDER_DATA, status="shipping",
            status_message="On its way", note=None, order_url="http://x"
        )
        assert "Shipping" in html
        assert "On its way" in html

    async def test_smtp_failure_returns_false(self, monkeypatch):
        async def failing_send(*args, **kwargs):
            raise aiosmtplib.SMTPException("relay refused")

        monkeypatch.setattr(aiosmtplib, "send", failing_send)

        sent = await EmailService().send_order_confirmation("buyer@example.com", ORDER_DATA)

        assert sent is False

    async def test_status_email_sent(self, monkeypatch):
        messages = []

        async def fake_send(message, **kwargs):
            messages.append(message)

        monkeypatch.setattr(aiosmtplib, "send", fake_send)

        sent = await EmailService().send_order_status_update("buyer@example.com", ORDER_DATA, "delivered")

        assert sent is True
        assert messages[0]["Subject"] == "Order #ORD-20240101-AB12 - Delivered"
        assert messages[0]["To"] == "buyer@example.com"

def test_order_data_for_templates():
    order = Order(
        id=uuid.uuid4(),
        order_number="ORD-20240101-ZZ99",
        email="buyer@example.com",
        full_name="Test Buyer",
        shipping_address={"full_name": "Test Buyer", "address_line1": "1 Road", "city": "Hanoi"},
        payment_method=PaymentMethod.PAYPAL,
        subtotal=1000,
        shipping_fee=35000,
        tax=0,
        discount_amount=0,
        loyalty_points_used=0,
        loyalty_points_earned=3,
        total=36000,
        items=[OrderItem(
            variant_id=uuid.uuid4(), product_name="Cotton Tee", variant_name="Red / M",
            sku="TEE-RED-M", unit_price=500, quantity=2, total_price=1000
        )],
    )

    data = build_order_data(order)

    assert data["id"] == str(order.id)
    assert data["email"] == "buyer@example.com"
    assert data["payment_method"] == "paypal"
    assert data["items"][0]["total_price"] == 1000
    assert "user_id" not in data

    html = EmailService().render("order_confirmation.html", order=data, track_url="http://x")
    assert "ORD-20240101-ZZ99" in html
