"""Order email background tasks"""

from celery import Task
from celery.utils.log import get_task_logger
from typing import Any, Dict, Optional
import asyncio
import uuid

from app.core.celery_app import celery_app
from app.core.database import get_db_sync_context
from app.models.order import Order
from app.services.email_service import EmailService

logger = get_task_logger(__name__)

class EmailTask(Task):
    """Base email task with retry logic"""
    autoretry_for = (ConnectionError, TimeoutError)
    retry_kwargs = {"max_retries": 3}
    retry_backoff = True
    retry_backoff_max = 600
    retry_jitter = True

def build_order_data(order: Order) -> Dict[str, Any]:
    """Plain dict of the fields the order templates render"""
    data = order.to_dict(exclude=["user_id", "notes", "updated_at"])
    data["payment_method"] = order.payment_method.value
    data["items"] = [
        {
            "product_name": item.product_name,
            "variant_name": item.variant_name,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "total_price": item.total_price,
        }
        for item in order.items
    ]
    return data

def load_order_data(order_id: str) -> Optional[Dict[str, Any]]:
    with get_db_sync_context() as db:
        order = db.get(Order, uuid.UUID(order_id))
        if order is None:
            return None
        data = build_order_data(order)
        return data

def run_async(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()

@celery_app.task(base=EmailTask, name="send_order_confirmation_email")
def send_order_confirmation_email(order_id: str) -> Dict[str, Any]:
    """Send order confirmation email"""
    order_data = load_order_data(order_id)
    if order_data is None:
        logger.warning(f"Order {order_id} not found, confirmation email skipped")
        return {"success": False, "error": "Order not found"}

    result = run_async(
        EmailService().send_order_confirmation(
            to_email=order_data["email"],
            order_data=order_data
        )
    )
    logger.info(f"Order confirmation email for {order_data['order_number']}: sent={result}")
    return {"success": result}

@celery_app.task(base=EmailTask, name="send_order_status_email")
def send_order_status_email(order_id: str, new_status: str, note: Optional[str] = None) -> Dict[str, Any]:
    """Send order status update email"""
    order_data = load_order_data(order_id)
    if order_data is None:
        logger.warning(f"Order {order_id} not found, status email skipped")
        return {"success": False, "error": "Order not found"}

    result = run_async(
        EmailService().send_order_status_update(
            to_email=order_data["email"],
            order_data=order_data,
            new_status=new_status,
            note=note
        )
    )
    logger.info(f"Status email ({new_status}) for {order_data['order_number']}: sent={result}")
    return {"success": result}
