"""Cart maintenance tasks"""

from celery.utils.log import get_task_logger
from datetime import datetime
from sqlalchemy import delete, select
from sqlalchemy.orm import Session
from typing import Optional

from app.core.celery_app import celery_app
from app.core.database import get_db_sync_context
from app.models.cart import Cart, CartItem
from app.utils.helpers import utcnow

logger = get_task_logger(__name__)

def delete_expired_guest_carts(db: Session, now: Optional[datetime] = None) -> int:
    """
    Delete anonymous carts whose expiry has passed, with their items

    Returns:
        Number of carts deleted
    """
    now = now or utcnow()
    expired = (
        select(Cart.id)
        .where(Cart.user_id.is_(None), Cart.expires_at.is_not(None), Cart.expires_at < now)
    )
    cart_ids = list(db.execute(expired).scalars())
    if not cart_ids:
        return 0

    db.execute(delete(CartItem).where(CartItem.cart_id.in_(cart_ids)))
    db.execute(delete(Cart).where(Cart.id.in_(cart_ids)))
    return len(cart_ids)

@celery_app.task(name="purge_expired_guest_carts")
def purge_expired_guest_carts():
    """Remove guest carts past their expiry"""
    with get_db_sync_context() as db:
        deleted = delete_expired_guest_carts(db)

    logger.info(f"Purged {deleted} expired guest carts")
    return {"carts_deleted": deleted}
