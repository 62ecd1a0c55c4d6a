"""Celery worker configuration.

Periodic jobs:
- Expire payment orders whose callback never arrived
- Clear the member flag on lapsed memberships
"""

from celery import Celery
from celery.schedules import crontab

from staymarket.config import settings

# Create Celery app
celery_app = Celery(
    "staymarket_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["staymarket.tasks"],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Kolkata",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,  # 5 minutes max
    task_soft_time_limit=240,

    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,

    # Result backend settings
    result_expires=3600,

    # Retry settings
    task_default_retry_delay=60,
    task_max_retries=3,

    # Beat schedule for periodic tasks
    beat_schedule={
        "expire-stale-payment-orders": {
            "task": "staymarket.tasks.expire_stale_payment_orders",
            "schedule": crontab(minute="*/5"),
        },
        "normalise-lapsed-memberships": {
            "task": "staymarket.tasks.normalise_lapsed_memberships",
            "schedule": crontab(hour=0, minute=10),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
