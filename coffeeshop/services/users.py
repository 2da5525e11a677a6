"""
User Service

Registration, login, profile updates and the OTP password reset flow.
Email delivery is not done here; routers dispatch Celery tasks with the
values these methods return.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coffeeshop.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from coffeeshop.core.security import (
    as_utc,
    generate_otp,
    hash_password,
    otp_expiry,
    verify_password,
)
from coffeeshop.models import User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("Account not found")
        return user

    # =========================================================================
    # REGISTRATION & LOGIN
    # =========================================================================

    async def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> User:
        """
        Create an account.

        Raises:
            ValidationError: If the email is already registered
        """
        if await self.get_by_email(email) is not None:
            raise ValidationError("Email already exists")

        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email.lower(),
            password=hash_password(password),
            phone=phone or None,
            address=address or None,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationError("Email already exists")

        logger.info(f"Registered user #{user.id} ({user.email})")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong
        """
        user = await self.get_by_email(email)
        if user is None or not verify_password(password, user.password):
            raise AuthenticationError("Invalid email or password")
        return user

    async def update_profile(
        self,
        user_id: int,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> User:
        if not first_name or not last_name:
            raise ValidationError("First and last name are required")

        user = await self.get_by_id(user_id)
        user.first_name = first_name
        user.last_name = last_name
        user.phone = phone or None
        user.address = address or None
        await self.db.commit()
        return user

    # =========================================================================
    # PASSWORD RESET
    # =========================================================================

    async def issue_reset_otp(self, email: str) -> Optional[tuple[User, str]]:
        """
        Store a fresh reset code for the account.

        Returns:
            ``(user, otp)``, or None when no account uses ``email``
        """
        user = await self.get_by_email(email)
        if user is None:
            logger.info("Reset OTP requested for unknown email")
            return None

        otp = generate_otp()
        user.reset_otp = otp
        user.reset_otp_expires = otp_expiry()
        await self.db.commit()

        logger.info(f"Reset OTP issued for user #{user.id}")
        return user, otp

    async def verify_reset_otp(self, email: str, otp: str) -> User:
        """
        Check a reset code without consuming it.

        Raises:
            ValidationError: If there is no pending code, the code is wrong,
                or it has expired
        """
        user = await self.get_by_email(email)
        if user is None or not user.reset_otp or not user.reset_otp_expires:
            raise ValidationError("Invalid OTP")
        if user.reset_otp != otp:
            raise ValidationError("Incorrect OTP")
        if as_utc(user.reset_otp_expires) < datetime.now(timezone.utc):
            raise ValidationError("OTP has expired")
        return user

    async def reset_password(self, email: str, otp: str, new_password: str) -> User:
        """Set a new password and clear the reset code so it cannot be reused."""
        user = await self.verify_reset_otp(email, otp)
        user.password = hash_password(new_password)
        user.reset_otp = None
        user.reset_otp_expires = None
        await self.db.commit()

        logger.info(f"Password reset for user #{user.id}")
        return user
