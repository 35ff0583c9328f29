"""
Order notification dispatch
Hands emails to Celery; a dispatch failure never reaches the caller
"""

from typing import Optional
import logging
import uuid

from app.core.config import settings
from app.models import OrderStatus
from app.tasks.email_tasks import send_order_confirmation_email, send_order_status_email

logger = logging.getLogger(__name__)

class NotificationService:
    """Fire-and-forget customer notifications"""

    def order_placed(self, order_id: uuid.UUID) -> bool:
        return self._dispatch(send_order_confirmation_email, str(order_id))

    def status_changed(self, order_id: uuid.UUID, status: OrderStatus, note: Optional[str] = None) -> bool:
        """Notify only for the statuses customers care about"""
        if status.value not in settings.NOTIFY_ORDER_STATUSES:
            return False
        return self._dispatch(send_order_status_email, str(order_id), status.value, note)

    def _dispatch(self, task, *args) -> bool:
        try:
            task.delay(*args)
            logger.info(f"Queued {task.name} for {args[0]}")
            return True
        except Exception:
            logger.exception(f"Failed to queue {task.name} for {args[0]}")
            return False
