"""
Order Service

Creates orders from the cart or a single-item checkout, lists order history,
applies status transitions and records the user's transfer confirmation.

An order and all of its items are written in one transaction; a failure on
any item rolls the whole order back. ``total_amount`` is stored as given by
the caller and is not recomputed from the items.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Union

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coffeeshop.core import pricing
from coffeeshop.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from coffeeshop.models import (
    DeliveryMethod,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    ProductSize,
    User,
    parse_status,
    payment_method_to_code,
    status_to_code,
)
from coffeeshop.schemas import OrderItemCreate
from coffeeshop.services.lifecycle import ensure_transition

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = "Customer"


def serialize_order(order: Order) -> dict[str, Any]:
    """Order history entry with readable status and date/address/note aliases."""
    return {
        "id": order.id,
        "status": order.status.value,
        "total_amount": order.total_amount,
        "date": order.created_at,
        "address": order.delivery_address,
        "note": order.notes,
        "payment_method": order.payment_method.value,
        "delivery_method": order.delivery_method,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "user_confirmed_transfer": bool(order.user_confirmed_transfer),
        "user_confirmed_transfer_at": order.user_confirmed_transfer_at,
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name if item.product else None,
                "price": item.price,
                "quantity": item.quantity,
                "size": item.size,
                "image": item.product.image if item.product else None,
            }
            for item in order.items
        ],
    }


class OrderService:
    """Order lifecycle operations for one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create_order(
        self,
        user: User,
        items: Iterable[Union[OrderItemCreate, dict]],
        total_amount: float,
        status: Optional[str] = None,
        address: Optional[str] = None,
        note: Optional[str] = None,
        payment_method: Optional[str] = None,
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        delivery_method: Union[str, DeliveryMethod] = DeliveryMethod.DELIVER,
    ) -> str:
        """
        Persist an order and one order item per line.

        Each item stores the unit price at order time; lines without a price
        take the current catalog price (base + size modifier).

        Returns:
            Id of the new order

        Raises:
            ValidationError: If there are no items
            NotFoundError: If an item references an unknown product
        """
        lines = [
            item if isinstance(item, OrderItemCreate) else OrderItemCreate.model_validate(item)
            for item in items
        ]
        if not lines:
            raise ValidationError("Order must contain at least one item")

        order = Order(
            user_id=user.id,
            total_amount=total_amount,
            status_id=status_to_code(status),
            delivery_address=address or None,
            notes=note or None,
            payment_method_id=payment_method_to_code(payment_method),
            delivery_method=DeliveryMethod(delivery_method).value,
            customer_name=customer_name or user.full_name or DEFAULT_CUSTOMER_NAME,
            customer_phone=customer_phone or user.phone or "",
        )

        try:
            for line in lines:
                price = line.price
                if price is None:
                    price = await self._catalog_price(line.product_id, line.size)
                elif await self.db.get(Product, line.product_id) is None:
                    raise NotFoundError(f"Product #{line.product_id} not found")
                order.items.append(OrderItem(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    size=line.size,
                    price=price,
                ))

            self.db.add(order)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Order {order.id} created for user #{user.id}: "
            f"{len(lines)} item(s), total {total_amount}, status {order.status.value}"
        )
        return order.id

    async def _catalog_price(self, product_id: int, size: Optional[str]) -> float:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product #{product_id} not found")

        modifier = 0.0
        if size:
            result = await self.db.execute(
                select(ProductSize.price_modifier).where(
                    and_(ProductSize.product_id == product_id, ProductSize.size == size)
                )
            )
            modifier = result.scalar_one_or_none() or 0.0
        return pricing.unit_price(product.price, modifier)

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_order(self, order_id: str) -> Order:
        """
        Load one order with its items.

        Raises:
            NotFoundError: If the order does not exist
        """
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items).selectinload(OrderItem.product))
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order not found")
        return order

    async def get_order_history(self, user_id: int) -> list[dict[str, Any]]:
        """All orders of a user, newest first, with nested items."""
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .options(selectinload(Order.items).selectinload(OrderItem.product))
            .order_by(Order.created_at.desc(), Order.id)
            .execution_options(populate_existing=True)
        )
        return [serialize_order(order) for order in result.scalars().all()]

    async def _get_owned_order(self, order_id: str, user_id: int) -> Order:
        order = await self.get_order(order_id)
        if order.user_id != user_id:
            logger.warning(f"User #{user_id} tried to modify order {order_id} owned by #{order.user_id}")
            raise AuthorizationError("You are not allowed to modify this order")
        return order

    # =========================================================================
    # STATUS
    # =========================================================================

    async def update_order_status(self, order_id: str, new_status: Optional[str], user_id: int) -> Order:
        """
        Move an order to ``new_status``.

        Unknown status strings are treated as ``processing``.

        Raises:
            NotFoundError: If the order does not exist
            AuthorizationError: If ``user_id`` does not own the order
            InvalidTransitionError: If the order is delivered, or is out for
                delivery and ``new_status`` is cancelled
        """
        order = await self._get_owned_order(order_id, user_id)
        current = order.status
        target = parse_status(new_status)

        ensure_transition(current, target)

        order.status_id = status_to_code(target)
        await self.db.commit()
        logger.info(f"Order {order_id}: {current.value} -> {target.value}")
        return order

    async def confirm_user_transfer(self, order_id: str, user_id: int) -> Order:
        """
        Record that the user says they transferred the payment.

        Marks the flag and timestamp and moves the order to ``pending``
        whatever its current status. Nothing about the payment is verified.

        Raises:
            NotFoundError: If the order does not exist
            AuthorizationError: If ``user_id`` does not own the order
        """
        order = await self._get_owned_order(order_id, user_id)
        previous = order.status

        order.user_confirmed_transfer = True
        order.user_confirmed_transfer_at = datetime.now(timezone.utc)
        order.status_id = status_to_code(OrderStatus.PENDING)
        await self.db.commit()

        logger.info(f"Order {order_id}: user confirmed transfer ({previous.value} -> pending)")
        return order
