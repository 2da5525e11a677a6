"""
Order Enums and Code Tables

Order status and payment method are stored as small integer codes that are
translated through fixed lookup tables. Unknown inputs fall back to
``processing`` and ``cash`` instead of failing; a warning is logged.
"""

import enum
import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)


class OrderStatus(str, enum.Enum):
    """Order lifecycle. PENDING means "out for delivery"."""
    PROCESSING = "processing"
    PENDING = "pending"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    MOMO = "momo"
    CASH = "cash"


class DeliveryMethod(str, enum.Enum):
    """Home delivery or pickup at the counter."""
    DELIVER = "deliver"
    PICKUP = "pickup"


STATUS_CODES: dict[OrderStatus, int] = {
    OrderStatus.PROCESSING: 1,
    OrderStatus.PENDING: 2,
    OrderStatus.DELIVERED: 3,
    OrderStatus.CANCELLED: 4,
}

PAYMENT_METHOD_CODES: dict[PaymentMethod, int] = {
    PaymentMethod.MOMO: 2,
    PaymentMethod.CASH: 3,
}

DEFAULT_STATUS = OrderStatus.PROCESSING
DEFAULT_PAYMENT_METHOD = PaymentMethod.CASH


def parse_status(value: Union[str, OrderStatus, None]) -> OrderStatus:
    """Translate a status string, falling back to ``processing``."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        if value is not None:
            logger.warning(f"Unknown order status {value!r}, using {DEFAULT_STATUS.value}")
        return DEFAULT_STATUS


def parse_payment_method(value: Union[str, PaymentMethod, None]) -> PaymentMethod:
    """Translate a payment method string, falling back to ``cash``."""
    if isinstance(value, PaymentMethod):
        return value
    try:
        return PaymentMethod(value)
    except ValueError:
        if value is not None:
            logger.warning(
                f"Unknown payment method {value!r}, using {DEFAULT_PAYMENT_METHOD.value}"
            )
        return DEFAULT_PAYMENT_METHOD


def status_to_code(status: Union[str, OrderStatus, None]) -> int:
    return STATUS_CODES[parse_status(status)]


def status_from_code(code: Optional[int]) -> OrderStatus:
    for status, status_code in STATUS_CODES.items():
        if status_code == code:
            return status
    return DEFAULT_STATUS


def payment_method_to_code(method: Union[str, PaymentMethod, None]) -> int:
    return PAYMENT_METHOD_CODES[parse_payment_method(method)]


def payment_method_from_code(code: Optional[int]) -> PaymentMethod:
    for method, method_code in PAYMENT_METHOD_CODES.items():
        if method_code == code:
            return method
    return DEFAULT_PAYMENT_METHOD
