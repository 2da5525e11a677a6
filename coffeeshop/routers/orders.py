"""
Order Routes

Checkout, order history, status changes and the "I transferred" handshake.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from coffeeshop.database import get_db
from coffeeshop.models import User
from coffeeshop.routers.deps import get_current_user
from coffeeshop.schemas import (
    MessageResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from coffeeshop.services import OrderService
from coffeeshop.tasks import send_order_confirmation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post(
    "",
    response_model=OrderCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Order",
)
async def create_order(
    body: OrderCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderCreateResponse:
    """
    Create an order from cart lines or a single product.

    ``total_amount`` is stored as sent by the client.
    """
    order_id = await OrderService(db).create_order(
        user,
        items=body.items,
        total_amount=body.total_amount,
        status=body.status,
        address=body.address,
        note=body.note,
        payment_method=body.payment_method,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        delivery_method=body.delivery_method,
    )

    try:
        send_order_confirmation.delay(
            user.email,
            body.customer_name or user.full_name,
            order_id,
            body.total_amount,
            body.delivery_method.value,
            body.address,
        )
    except Exception as e:
        logger.warning(f"Could not queue confirmation for order {order_id}: {e}")

    return OrderCreateResponse(message="Order created successfully", order_id=order_id)


@router.get("", response_model=list[OrderResponse], summary="Order History")
async def get_order_history(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return await OrderService(db).get_order_history(user.id)


@router.put(
    "/{order_id}/status",
    response_model=MessageResponse,
    summary="Update Order Status",
)
async def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await OrderService(db).update_order_status(order_id, body.status, user.id)
    return MessageResponse(message="Order status updated successfully")


@router.put(
    "/{order_id}/confirm-transfer",
    response_model=MessageResponse,
    summary="Confirm Bank Transfer",
)
async def confirm_transfer(
    order_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await OrderService(db).confirm_user_transfer(order_id, user.id)
    return MessageResponse(message="Transfer confirmed by user")
