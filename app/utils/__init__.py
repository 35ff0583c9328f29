"""Utilities package"""

from .helpers import utcnow, generate_order_number, to_uuid, period_range
from .pagination import paginate, PaginationParams

__all__ = [
    "utcnow",
    "generate_order_number",
    "to_uuid",
    "period_range",
    "paginate",
    "PaginationParams",
]
