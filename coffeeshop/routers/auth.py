"""
Auth Routes

Registration, login, profile and OTP password reset.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from coffeeshop.core.security import create_access_token
from coffeeshop.database import get_db
from coffeeshop.models import User
from coffeeshop.routers.deps import get_current_user
from coffeeshop.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    OtpRequest,
    OtpVerifyRequest,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from coffeeshop.services import UserService
from coffeeshop.tasks import send_login_notice, send_password_reset_otp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

OTP_SENT_MESSAGE = "If the email exists, you will receive an OTP code."


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    user = await UserService(db).register(
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=body.password,
        phone=body.phone,
        address=body.address,
    )
    return AuthResponse(
        message="Registration successful",
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    user = await UserService(db).authenticate(body.email, body.password)

    # A failed notice must never block the login
    try:
        send_login_notice.delay(
            user.email, user.full_name, datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        )
    except Exception as e:
        logger.warning(f"Could not queue login notice for user #{user.id}: {e}")

    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=create_access_token(user.id),
    )


@router.post(
    "/request-reset-otp",
    response_model=MessageResponse,
    summary="Request Password Reset Code",
)
async def request_reset_otp(
    body: OtpRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Answers the same message whether or not the email is registered."""
    issued = await UserService(db).issue_reset_otp(body.email)
    if issued is not None:
        user, otp = issued
        # A failed email must never turn the request into an error
        try:
            send_password_reset_otp.delay(user.email, user.full_name, otp)
        except Exception as e:
            logger.warning(f"Could not queue reset OTP for user #{user.id}: {e}")
    return MessageResponse(message=OTP_SENT_MESSAGE)


@router.post(
    "/verify-reset-otp",
    response_model=MessageResponse,
    summary="Verify Password Reset Code",
)
async def verify_reset_otp(
    body: OtpVerifyRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await UserService(db).verify_reset_otp(body.email, body.otp)
    return MessageResponse(message="OTP is valid. You can reset your password.")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset Password",
)
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await UserService(db).reset_password(body.email, body.otp, body.new_password)
    return MessageResponse(message="Password changed successfully.")


@router.get(
    "/profile",
    response_model=UserResponse,
    summary="Get Profile",
)
async def get_profile(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.put(
    "/profile",
    response_model=UserResponse,
    summary="Update Profile",
)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    updated = await UserService(db).update_profile(
        user.id,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        address=body.address,
    )
    return UserResponse.model_validate(updated)
