"""Celery application configuration"""

from celery import Celery
from kombu import Exchange, Queue
from app.core.config import settings

celery_app = Celery(
    "storefront",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "app.tasks.email_tasks",
        "app.tasks.cart_tasks",
    ]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,
    task_soft_time_limit=8 * 60,
    task_acks_late=True,
    worker_prefetch_multiplier=1,

    task_routes={
        "app.tasks.email_tasks.*": {"queue": "email"},
        "app.tasks.cart_tasks.*": {"queue": "cleanup"},
    },

    task_default_retry_delay=60,
    result_expires=3600,
)

celery_app.conf.task_queues = (
    Queue("default", Exchange("default"), routing_key="default"),
    Queue("email", Exchange("email"), routing_key="email"),
    Queue("cleanup", Exchange("cleanup"), routing_key="cleanup"),
)

celery_app.conf.beat_schedule = {
    "purge-expired-guest-carts": {
        "task": "purge_expired_guest_carts",
        "schedule": settings.CART_CLEANUP_INTERVAL_SECONDS,
        "options": {"queue": "cleanup"}
    },
}
