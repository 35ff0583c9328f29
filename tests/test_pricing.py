"""
Pure pricing and status functions.

Covers:
- current price (sale vs list)
- percentage and fixed discounts
- loyalty redemption quote and earning
- order total formula
- current status from the status log
- order number format and timestamp helpers
"""

import re
from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import InsufficientPointsException
from app.models import DiscountCode, DiscountType, OrderStatus, OrderStatusEntry, ProductVariant, current_price
from app.models.order import current_status
from app.services.checkout_service import compute_order_total
from app.services.loyalty_service import points_earned, quote_redemption
from app.utils.helpers import generate_order_number, period_range, to_naive_utc

class TestCurrentPrice:
    def test_sale_price_below_list_wins(self):
        assert current_price(ProductVariant(price=1000, sale_price=800)) == 800

    def test_sale_price_not_lower_is_ignored(self):
        assert current_price(ProductVariant(price=1000, sale_price=1200)) == 1000

    def test_no_sale_price(self):
        assert current_price(ProductVariant(price=1000, sale_price=None)) == 1000

class TestDiscount:
    @pytest.mark.parametrize("value,subtotal,expected", [
        (10, 1000, 100),
        (15, 999, 149),
        (100, 1234, 1234),
        (150, 1234, 1234),
    ])
    def test_percentage(self, value, subtotal, expected):
        code = DiscountCode(code="SAVE1", discount_type=DiscountType.PERCENTAGE, discount_value=value)
        assert code.calculate_discount(subtotal) == expected

    @pytest.mark.parametrize("value,subtotal,expected", [
        (300, 1000, 300),
        (5000, 1000, 1000),
    ])
    def test_fixed_never_exceeds_subtotal(self, value, subtotal, expected):
        code = DiscountCode(code="FLAT1", discount_type=DiscountType.FIXED, discount_value=value)
        assert code.calculate_discount(subtotal) == expected

    def test_remaining_uses_never_negative(self):
        code = DiscountCode(
            code="ABCDE", discount_type=DiscountType.FIXED, discount_value=10,
            usage_limit=2, used_count=3, is_active=True
        )
        assert code.remaining_uses == 0

class TestLoyalty:
    def test_full_redemption(self):
        quote = quote_redemption(balance=50, points=10, cap=100000)
        assert quote.points_used == 10
        assert quote.points_value == 10000
        assert quote.remaining_points == 40

    def test_capped_by_amount_floors_points(self):
        quote = quote_redemption(balance=50, points=10, cap=4500)
        assert quote.requested_value == 10000
        assert quote.applied_value == 4500
        assert quote.points_used == 4
        assert quote.points_value == 4000

    def test_more_than_balance(self):
        with pytest.raises(InsufficientPointsException) as exc_info:
            quote_redemption(balance=3, points=5, cap=100000)
        assert "You only have 3 loyalty points available" in exc_info.value.detail

    def test_points_earned_is_ten_percent_in_whole_points(self):
        assert points_earned(36000) == 3
        assert points_earned(9999) == 0

class TestOrderTotal:
    def test_example_scenario(self):
        assert compute_order_total(1000, 35000, 0, 0, 0) == 36000

    def test_all_terms(self):
        assert compute_order_total(50000, 35000, 2000, 5000, 3) == 50000 + 35000 + 2000 - 5000 - 3000

class TestCurrentStatus:
    def test_empty_log(self):
        assert current_status([]) is None

    def test_latest_entry_wins(self):
        start = datetime(2024, 1, 1, 12, 0)
        history = [
            OrderStatusEntry(status=OrderStatus.CONFIRMED, created_at=start + timedelta(minutes=5), seq=1),
            OrderStatusEntry(status=OrderStatus.PENDING, created_at=start, seq=0),
        ]
        assert current_status(history) == OrderStatus.CONFIRMED

    def test_ties_broken_by_insertion(self):
        moment = datetime(2024, 1, 1, 12, 0)
        history = [
            OrderStatusEntry(status=OrderStatus.PENDING, created_at=moment, seq=0),
            OrderStatusEntry(status=OrderStatus.CANCELLED, created_at=moment, seq=1),
        ]
        assert current_status(history) == OrderStatus.CANCELLED

class TestHelpers:
    def test_order_number_format(self):
        number = generate_order_number(now=datetime(2024, 3, 9))
        assert re.fullmatch(r"ORD-20240309-[A-Z0-9]{4}", number)

    def test_period_range(self):
        now = datetime(2024, 3, 9, 15, 30)
        start, end = period_range("yesterday", now)
        assert start == datetime(2024, 3, 8)
        assert end == datetime(2024, 3, 9)

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            period_range("decade")

    def test_aware_timestamp_to_naive_utc(self):
        hanoi = timezone(timedelta(hours=7))
        assert to_naive_utc(datetime(2026, 1, 1, 9, 0, tzinfo=hanoi)) == datetime(2026, 1, 1, 2, 0)
        assert to_naive_utc(datetime(2026, 1, 1, 9, 0)) == datetime(2026, 1, 1, 9, 0)
