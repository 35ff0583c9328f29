"""
Helper utilities
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple
import secrets
import string
import uuid

def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_naive_utc(value: datetime) -> datetime:
    """Bring an aware timestamp to naive UTC; naive values are taken as UTC already"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)

def generate_order_number(prefix: str = "ORD", now: Optional[datetime] = None) -> str:
    """
    Generate order number of the form ORD-YYYYMMDD-XXXX

    Args:
        prefix: Number prefix
        now: Timestamp supplying the date part

    Returns:
        Order number; uniqueness is checked by the caller
    """
    now = now or utcnow()
    characters = string.ascii_uppercase + string.digits
    random_suffix = ''.join(secrets.choice(characters) for _ in range(4))
    return f"{prefix}-{now.strftime('%Y%m%d')}-{random_suffix}"

def to_uuid(value: Any) -> uuid.UUID:
    """
    Normalize an entity reference to its UUID

    Accepts a model instance with an ``id``, a UUID, or its string form.
    Raises ValueError for anything else.
    """
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        return uuid.UUID(value)
    ref = getattr(value, "id", None)
    if isinstance(ref, uuid.UUID):
        return ref
    if isinstance(ref, str):
        return uuid.UUID(ref)
    raise ValueError(f"Cannot derive an id from {value!r}")

def period_range(period: str, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Resolve a named reporting period to a [start, end) range

    Supported periods: today, yesterday, week (last 7 days), month (last 30 days)
    """
    now = now or utcnow()
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == "today":
        return start_of_today, start_of_today + timedelta(days=1)
    if period == "yesterday":
        return start_of_today - timedelta(days=1), start_of_today
    if period == "week":
        return now - timedelta(days=7), now
    if period == "month":
        return now - timedelta(days=30), now
    raise ValueError(f"Unknown period: {period}")
