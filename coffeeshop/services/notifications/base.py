"""
Notification Service Abstract Base Class

Defines the interface for sending customer emails (password reset codes,
login notices, order confirmations). Mock (development) and SendGrid
(staging/production) implementations share the message templates below.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from coffeeshop.core.config import get_settings


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass

    # =========================================================================
    # TEMPLATED MESSAGES
    # =========================================================================

    async def send_password_reset_otp(
        self,
        to_email: str,
        customer_name: str,
        otp: str,
    ) -> NotificationResult:
        """Email a password reset code."""
        settings = get_settings()
        subject = f"Password reset code - {settings.shop_name}"
        body_html = (
            f"<h1>Password reset code</h1>"
            f"<p>Hello {customer_name},</p>"
            f"<p>Your code is:</p>"
            f"<div style=\"font-size: 32px; font-weight: bold; color: #C87D55;\">{otp}</div>"
            f"<p>This code is valid for {settings.otp_expire_minutes} minutes.</p>"
            f"<p>If you did not request a password reset, ignore this email.</p>"
        )
        body_text = (
            f"Hello {customer_name}, your {settings.shop_name} password reset code is {otp}. "
            f"It expires in {settings.otp_expire_minutes} minutes."
        )
        return await self.send_email(to_email, subject, body_html, body_text)

    async def send_login_notice(
        self,
        to_email: str,
        customer_name: str,
        login_time: str,
    ) -> NotificationResult:
        """Tell the user their account was just signed in."""
        settings = get_settings()
        subject = f"New sign-in - {settings.shop_name}"
        body_html = (
            f"<h1>Signed in</h1>"
            f"<p>Hello {customer_name},</p>"
            f"<p>Your account was signed in at {login_time}.</p>"
            f"<p>If this was not you, contact us immediately.</p>"
        )
        return await self.send_email(to_email, subject, body_html)

    async def send_order_confirmation(
        self,
        to_email: str,
        customer_name: str,
        order_id: str,
        total_amount: float,
        delivery_method: str,
        delivery_address: Optional[str] = None,
    ) -> NotificationResult:
        """Send the order summary after checkout."""
        settings = get_settings()
        if delivery_method == "pickup":
            details = "Pickup at the counter"
        else:
            details = f"Delivery to: {delivery_address or '-'}"

        subject = f"Order confirmed - {settings.shop_name}"
        body_html = (
            f"<h1>Order confirmed</h1>"
            f"<p>Hello {customer_name}, your order <b>{order_id}</b> has been received.</p>"
            f"<p>{details}</p>"
            f"<p>Total: {total_amount:,.0f} {settings.currency}</p>"
        )
        return await self.send_email(to_email, subject, body_html)
