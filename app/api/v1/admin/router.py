"""Admin management endpoints: orders and discount codes"""

from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.api.v1.auth.dependencies import require_admin
from app.api.v1.orders.schemas import OrderListResponse, OrderResponse
from app.api.v1.orders.services import OrderService
from app.core.database import get_db
from app.models.order import OrderStatus
from app.models.user import User
from app.services.discount_service import DiscountService
from app.utils.dependencies import get_pagination_params
from app.utils.pagination import PaginationParams
from .schemas import (
    DiscountCreate,
    DiscountDeleteResponse,
    DiscountDetailResponse,
    DiscountListResponse,
    DiscountResponse,
    OrderStatistics,
    OrderStatusUpdate,
    PaymentStatusUpdate,
)

router = APIRouter()

# Orders

@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    period: Optional[str] = Query(None, pattern="^(today|yesterday|week|month)$"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """All orders, filtered by current status, period or date range and search"""
    return await OrderService(db).list_orders(
        status=order_status,
        period=period,
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=pagination.page,
        size=pagination.size
    )

@router.get("/orders/statistics", response_model=OrderStatistics)
async def order_statistics(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await OrderService(db).get_order_statistics(start_date, end_date)

@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await OrderService(db).get_order(order_id)

@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    data: OrderStatusUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Move an order along its status sequence"""
    return await OrderService(db).update_order_status(order_id, data.status, data.note, current_user.id)

@router.patch("/orders/{order_id}/payment-status", response_model=OrderResponse)
async def update_payment_status(
    order_id: uuid.UUID,
    data: PaymentStatusUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await OrderService(db).update_payment_status(order_id, data.payment_status)

# Discount codes

@router.get("/discounts", response_model=DiscountListResponse)
async def list_discounts(
    is_active: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await DiscountService(db).list_codes(is_active, pagination.page, pagination.size)

@router.post("/discounts", response_model=DiscountResponse, status_code=status.HTTP_201_CREATED)
async def create_discount(
    data: DiscountCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a discount code"""
    return await DiscountService(db).create_code(
        code=data.code,
        discount_type=data.discount_type,
        discount_value=data.discount_value,
        usage_limit=data.usage_limit,
        created_by=current_user.id
    )

@router.get("/discounts/{code}", response_model=DiscountDetailResponse)
async def get_discount(
    code: str,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await DiscountService(db).get_code_detail(code)

@router.delete("/discounts/{code}", response_model=DiscountDeleteResponse)
async def delete_discount(
    code: str,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a code; one that was already used is deactivated instead"""
    return await DiscountService(db).delete_code(code)

@router.patch("/discounts/{code}/toggle", response_model=DiscountResponse)
async def toggle_discount(
    code: str,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await DiscountService(db).toggle_code(code)
