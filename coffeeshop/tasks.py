"""
Celery Tasks
Background email delivery so request handlers never wait on SendGrid.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from coffeeshop.celery_worker import celery_app
from coffeeshop.services.notifications import NotificationResult, get_notification_service

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised so Celery retries a failed delivery."""


def _deliver(result: NotificationResult, task_id: str, kind: str, to_email: str) -> dict:
    if not result.success:
        logger.warning(f"Task {task_id}: {kind} to {to_email} failed - {result.error_message}")
        raise EmailDeliveryError(result.error_message or "Email delivery failed")

    logger.info(f"Task {task_id}: {kind} sent to {to_email} ({result.message_id})")
    return {
        'success': True,
        'message_id': result.message_id,
        'provider': result.provider,
        'task_id': task_id,
    }


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(EmailDeliveryError,),
    retry_backoff=True
)
def send_password_reset_otp(self, to_email: str, customer_name: str, otp: str) -> dict:
    """
    Email a password reset code.

    Args:
        to_email: Recipient address
        customer_name: Name used in the greeting
        otp: 6-digit code
    """
    service = get_notification_service()
    result = asyncio.run(service.send_password_reset_otp(to_email, customer_name, otp))
    return _deliver(result, self.request.id, "reset OTP", to_email)


@celery_app.task(
    bind=True,
    max_retries=2,
    default_retry_delay=5,
    autoretry_for=(EmailDeliveryError,),
    retry_backoff=True
)
def send_login_notice(self, to_email: str, customer_name: str, login_time: str) -> dict:
    """Email a sign-in notice."""
    service = get_notification_service()
    result = asyncio.run(service.send_login_notice(to_email, customer_name, login_time))
    return _deliver(result, self.request.id, "login notice", to_email)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(EmailDeliveryError,),
    retry_backoff=True
)
def send_order_confirmation(
    self,
    to_email: str,
    customer_name: str,
    order_id: str,
    total_amount: float,
    delivery_method: str,
    delivery_address: Optional[str] = None,
) -> dict:
    """Email the order summary after checkout."""
    service = get_notification_service()
    result = asyncio.run(service.send_order_confirmation(
        to_email=to_email,
        customer_name=customer_name,
        order_id=order_id,
        total_amount=total_amount,
        delivery_method=delivery_method,
        delivery_address=delivery_address,
    ))
    return _deliver(result, self.request.id, f"order {order_id} confirmation", to_email)


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }
