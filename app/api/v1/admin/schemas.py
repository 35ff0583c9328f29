"""
Admin schemas: order management and discount codes
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime
import uuid

from app.api.v1.orders.schemas import OrderSummaryResponse
from app.models.discount import DiscountType
from app.models.order import OrderStatus, PaymentStatus

class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = Field(None, max_length=500)

class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus

class OrderStatistics(BaseModel):
    """Order counts per current status; revenue excludes cancelled orders"""
    total_orders: int
    status_counts: Dict[str, int]
    total_revenue: int
    average_order_value: int

class DiscountCreate(BaseModel):
    """Schema for creating a discount code"""
    code: str = Field(..., min_length=1, max_length=20)
    discount_type: DiscountType
    discount_value: int
    usage_limit: int = 1

class DiscountResponse(BaseModel):
    id: uuid.UUID
    code: str
    discount_type: DiscountType
    discount_value: int
    usage_limit: int
    used_count: int
    remaining_uses: int
    is_active: bool
    created_by: Optional[uuid.UUID]
    created_at: datetime

    class Config:
        from_attributes = True

class DiscountListResponse(BaseModel):
    items: List[DiscountResponse]
    total: int
    page: int
    size: int
    pages: int

class DiscountDetailResponse(BaseModel):
    """Code with the orders that used it"""
    discount: DiscountResponse
    orders: List[OrderSummaryResponse]

class DiscountDeleteResponse(BaseModel):
    code: str
    deleted: bool
    deactivated: bool
