"""
Order service layer
Order lookup, tracking, cancellation and admin status management
"""

from typing import Any, Dict, Optional
from datetime import datetime, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.sql import Select
import asyncio
import logging
import uuid

from app.core.config import settings
from app.core.exceptions import (
    NotFoundException,
    OrderNotCancellableException,
    ServiceUnavailableException,
    ValidationException,
)
from app.models import Order, OrderStatus, OrderStatusEntry, PaymentStatus
from app.services.inventory_service import InventoryService
from app.services.loyalty_service import LoyaltyService
from app.services.notification_service import NotificationService
from app.services.post_commit import run_post_commit_step
from app.utils.helpers import period_range, to_naive_utc, utcnow
from app.utils.pagination import paginate
from .state_machine import OrderStateMachine

logger = logging.getLogger(__name__)

def latest_status_subquery():
    """Correlated scalar subquery giving each order's current status"""
    return (
        select(OrderStatusEntry.status)
        .where(OrderStatusEntry.order_id == Order.id)
        .order_by(OrderStatusEntry.created_at.desc(), OrderStatusEntry.seq.desc())
        .limit(1)
        .correlate(Order)
        .scalar_subquery()
    )

def apply_date_range(
    query: Select,
    start_date: Optional[datetime],
    end_date: Optional[datetime]
) -> Select:
    """
    Restrict to orders created in [start_date, end_date]; a bare end date covers its whole day

    Bounds carrying a UTC offset are compared as naive UTC, like the stored timestamps.
    """
    if start_date is not None:
        query = query.where(Order.created_at >= to_naive_utc(start_date))
    if end_date is not None:
        whole_day = end_date.time() == datetime.min.time()
        end_date = to_naive_utc(end_date)
        if whole_day:
            end_date = end_date + timedelta(days=1)
            query = query.where(Order.created_at < end_date)
        else:
            query = query.where(Order.created_at <= end_date)
    return query

class OrderService:
    """Order service for business logic"""

    def __init__(self, db: AsyncSession, notifications: Optional[NotificationService] = None):
        self.db = db
        self.inventory = InventoryService(db)
        self.loyalty = LoyaltyService(db)
        self.notifications = notifications or NotificationService()
        self.state_machine = OrderStateMachine()

    async def get_order(
        self,
        order_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None
    ) -> Order:
        """
        Get order with items and status history

        Args:
            order_id: Order ID
            user_id: Restrict to orders of this user

        Returns:
            Order

        Raises:
            NotFoundException: Unknown order, or not owned by user_id
        """
        query = (
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        if user_id is not None:
            query = query.where(Order.user_id == user_id)

        result = await self.db.execute(query)
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException("Order not found")
        return order

    async def list_user_orders(
        self,
        user_id: uuid.UUID,
        status: Optional[OrderStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        size: int = 10
    ) -> Dict[str, Any]:
        """Paginated orders of a user, newest first"""
        query = select(Order).where(Order.user_id == user_id)
        if status is not None:
            query = query.where(latest_status_subquery() == status)
        query = apply_date_range(query, start_date, end_date)
        query = query.order_by(Order.created_at.desc())

        return await paginate(self.db, query, page, size)

    async def get_order_tracking(self, order_id: uuid.UUID, user_id: uuid.UUID) -> Dict[str, Any]:
        """Current status and history, newest entry first"""
        order = await self.get_order(order_id, user_id=user_id)
        history = sorted(
            order.status_history,
            key=lambda entry: (entry.created_at, entry.seq),
            reverse=True
        )
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "current_status": order.status,
            "payment_status": order.payment_status,
            "status_history": history,
        }

    async def cancel_order(
        self,
        order_id: uuid.UUID,
        user_id: uuid.UUID,
        reason: Optional[str] = None
    ) -> Order:
        """
        Customer cancellation, allowed while pending or confirmed

        Raises:
            OrderNotCancellableException: Order already past confirmation
        """
        order = await self.get_order(order_id, user_id=user_id)
        if not self.state_machine.is_cancellable(order.status):
            raise OrderNotCancellableException()

        return await self.change_status(order, OrderStatus.CANCELLED, reason or "Cancelled by customer", user_id)

    async def update_order_status(
        self,
        order_id: uuid.UUID,
        new_status: OrderStatus,
        note: Optional[str],
        actor_id: uuid.UUID
    ) -> Order:
        """Admin status change"""
        order = await self.get_order(order_id)
        return await self.change_status(
            order, new_status, note or f"Status updated to {new_status.value}", actor_id
        )

    async def change_status(
        self,
        order: Order,
        new_status: OrderStatus,
        note: Optional[str],
        actor_id: Optional[uuid.UUID]
    ) -> Order:
        """
        Append a status entry and run the side effects of the transition

        Re-submitting the current status of an open order records nothing.
        Cancelling returns stock and redeemed points as best-effort steps;
        notification failures are logged only.
        """
        previous = order.status
        if not self.state_machine.validate_transition(previous, new_status):
            return order

        order.status_history.append(
            OrderStatusEntry(
                status=new_status,
                note=note,
                changed_by=actor_id,
                seq=len(order.status_history),
                created_at=utcnow(),
            )
        )

        order_id = order.id
        order_number = order.order_number
        lines = [(item.variant_id, item.quantity) for item in order.items]
        user_id = order.user_id
        points_used = order.loyalty_points_used

        await self.db.commit()
        logger.info(f"Order {order_number}: {previous.value if previous else None} -> {new_status.value}")

        if new_status == OrderStatus.CANCELLED:
            for variant_id, quantity in lines:
                await run_post_commit_step(
                    self.db, f"order {order_number}: restock variant {variant_id}",
                    lambda variant_id=variant_id, quantity=quantity: self.inventory.increase(variant_id, quantity)
                )
            if user_id is not None and points_used > 0:
                await run_post_commit_step(
                    self.db, f"order {order_number}: restore {points_used} loyalty points",
                    lambda: self.loyalty.restore_points(user_id, points_used)
                )

        self.notifications.status_changed(order_id, new_status, note)

        return await self.get_order(order_id)

    async def update_payment_status(self, order_id: uuid.UUID, payment_status: PaymentStatus) -> Order:
        """The one Order field that changes after checkout"""
        order = await self.get_order(order_id)
        order.payment_status = payment_status
        await self.db.commit()
        logger.info(f"Order {order.order_number}: payment status set to {payment_status.value}")
        return await self.get_order(order_id)

    async def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        period: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        search: Optional[str] = None,
        page: int = 1,
        size: int = 10
    ) -> Dict[str, Any]:
        """
        Admin order listing

        Raises:
            ServiceUnavailableException: Query exceeded the admin timeout
        """
        query = select(Order)

        if status is not None:
            query = query.where(latest_status_subquery() == status)

        if period:
            try:
                period_start, period_end = period_range(period)
            except ValueError as e:
                raise ValidationException(str(e))
            query = query.where(Order.created_at >= period_start, Order.created_at < period_end)
        else:
            query = apply_date_range(query, start_date, end_date)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Order.order_number.ilike(pattern),
                    Order.email.ilike(pattern),
                    Order.full_name.ilike(pattern),
                )
            )

        query = query.order_by(Order.created_at.desc())

        try:
            return await asyncio.wait_for(
                paginate(self.db, query, page, size),
                timeout=settings.ADMIN_ORDER_QUERY_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            logger.error(f"Admin order listing timed out after {settings.ADMIN_ORDER_QUERY_TIMEOUT_SECONDS}s")
            raise ServiceUnavailableException("Order query timed out, please try again")

    async def get_order_statistics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Order counts per current status, revenue and average value of non-cancelled orders"""
        base = select(
            Order.id,
            Order.total,
            latest_status_subquery().label("current_status")
        )
        base = apply_date_range(base, start_date, end_date).subquery()

        result = await self.db.execute(
            select(
                base.c.current_status,
                func.count(base.c.id),
                func.coalesce(func.sum(base.c.total), 0)
            ).group_by(base.c.current_status)
        )

        status_counts = {status.value: 0 for status in OrderStatus}
        total_orders = 0
        revenue = 0
        revenue_orders = 0
        for current, count, total in result.all():
            if current is None:
                continue
            key = current.value if isinstance(current, OrderStatus) else str(current)
            status_counts[key] = count
            total_orders += count
            if key != OrderStatus.CANCELLED.value:
                revenue += int(total)
                revenue_orders += count

        return {
            "total_orders": total_orders,
            "status_counts": status_counts,
            "total_revenue": revenue,
            "average_order_value": revenue // revenue_orders if revenue_orders else 0,
        }
