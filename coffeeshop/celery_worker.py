"""
Celery Worker Configuration

Email delivery runs on a dedicated ``emails`` queue so a slow provider
never holds up the health check task.

Run a worker with:
    celery -A coffeeshop.celery_worker worker -Q emails,celery --loglevel=info
"""

from celery import Celery

from coffeeshop.core.config import get_settings

settings = get_settings()

EMAIL_QUEUE = "emails"

celery_app = Celery(
    "coffeeshop_worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["coffeeshop.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    task_routes={
        "coffeeshop.tasks.send_password_reset_otp": {"queue": EMAIL_QUEUE},
        "coffeeshop.tasks.send_login_notice": {"queue": EMAIL_QUEUE},
        "coffeeshop.tasks.send_order_confirmation": {"queue": EMAIL_QUEUE},
    },

    # One email at a time per process; SendGrid calls are blocking
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
    task_soft_time_limit=30,

    # Reset codes are useless once expired, so results need not linger
    result_expires=settings.otp_expire_minutes * 60,

    task_acks_late=True,  # Acknowledge task after completion
    task_reject_on_worker_lost=True,  # Requeue task if worker dies

    broker_connection_retry_on_startup=True,
)


if __name__ == "__main__":
    celery_app.start()
