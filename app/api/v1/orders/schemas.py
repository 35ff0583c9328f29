"""
Order schemas for request/response validation
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
import uuid

from app.models.discount import DiscountType
from app.models.order import OrderStatus, PaymentMethod, PaymentStatus
from app.utils.validators import normalize_discount_code, validate_email_address

class ShippingAddress(BaseModel):
    """Schema for shipping address"""
    full_name: str = Field(..., min_length=2, max_length=255)
    phone: str = Field(..., min_length=6, max_length=20)
    address_line1: str = Field(..., min_length=3, max_length=500)
    address_line2: Optional[str] = Field(None, max_length=500)
    city: str = Field(..., min_length=2, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: str = Field("Vietnam", max_length=100)

class OrderCreate(BaseModel):
    """Schema for checkout"""
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    email: Optional[str] = Field(None, max_length=255)
    discount_code: Optional[str] = Field(None, max_length=20)
    loyalty_points_used: int = Field(0, ge=0)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if v is None or not v.strip():
            return None
        return validate_email_address(v)

    @field_validator("discount_code")
    @classmethod
    def upper_code(cls, v):
        if v is None or not v.strip():
            return None
        return normalize_discount_code(v)

class OrderItemResponse(BaseModel):
    """Schema for order item response"""
    id: uuid.UUID
    variant_id: uuid.UUID
    product_name: str
    variant_name: str
    sku: Optional[str]
    unit_price: int
    quantity: int
    total_price: int

    class Config:
        from_attributes = True

class StatusEntryResponse(BaseModel):
    """Schema for one status log entry"""
    status: OrderStatus
    note: Optional[str]
    changed_by: Optional[uuid.UUID]
    created_at: datetime

    class Config:
        from_attributes = True

class OrderResponse(BaseModel):
    """Schema for order response"""
    id: uuid.UUID
    order_number: str
    user_id: Optional[uuid.UUID]
    email: str
    full_name: str
    phone: Optional[str]
    shipping_address: Dict[str, Any]
    notes: Optional[str]

    # Status
    status: Optional[OrderStatus]
    payment_method: PaymentMethod
    payment_status: PaymentStatus

    # Amounts
    subtotal: int
    shipping_fee: int
    tax: int
    discount_code: Optional[str]
    discount_amount: int
    loyalty_points_used: int
    loyalty_points_earned: int
    total: int

    created_at: datetime
    items: List[OrderItemResponse]
    status_history: List[StatusEntryResponse]

    class Config:
        from_attributes = True

class OrderSummaryResponse(BaseModel):
    """Schema for order list rows"""
    id: uuid.UUID
    order_number: str
    email: str
    full_name: str
    status: Optional[OrderStatus]
    payment_status: PaymentStatus
    total: int
    created_at: datetime

    class Config:
        from_attributes = True

class OrderListResponse(BaseModel):
    """Paginated order list"""
    items: List[OrderSummaryResponse]
    total: int
    page: int
    size: int
    pages: int

class OrderTrackingResponse(BaseModel):
    """Current status with the status log, newest first"""
    order_id: uuid.UUID
    order_number: str
    current_status: Optional[OrderStatus]
    payment_status: PaymentStatus
    status_history: List[StatusEntryResponse]

class OrderCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

class VerifyDiscountRequest(BaseModel):
    """Discount preview against the caller's cart"""
    code: str = Field(..., min_length=1, max_length=20)

class VerifyDiscountResponse(BaseModel):
    code: str
    discount_type: DiscountType
    discount_value: int
    subtotal: int
    discount_amount: int
    remaining_uses: int

class LoyaltyQuoteRequest(BaseModel):
    points: int = Field(..., ge=0)
    subtotal: Optional[int] = Field(None, ge=0)

class LoyaltyQuoteResponse(BaseModel):
    requested_points: int
    requested_value: int
    applied_value: int
    points_used: int
    points_value: int
    remaining_points: int
