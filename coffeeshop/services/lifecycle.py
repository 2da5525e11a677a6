"""
Order Status Transitions

A delivered order is terminal, and an order that is out for delivery
(``pending``) can no longer be cancelled. Every other change is accepted;
there is no strict forward ordering.
"""

import enum

from coffeeshop.core.enums import OrderStatus
from coffeeshop.core.exceptions import InvalidTransitionError


class TransitionResult(str, enum.Enum):
    ALLOWED = "allowed"
    REJECTED_TERMINAL = "rejected_terminal"
    REJECTED_IN_TRANSIT = "rejected_in_transit"

    @property
    def allowed(self) -> bool:
        return self is TransitionResult.ALLOWED


REJECTION_MESSAGES = {
    TransitionResult.REJECTED_TERMINAL: "Cannot update the status of a delivered order",
    TransitionResult.REJECTED_IN_TRANSIT: "Cannot cancel an order that is being delivered",
}


def check_transition(current: OrderStatus, target: OrderStatus) -> TransitionResult:
    """Classify a status change without applying it."""
    if current is OrderStatus.DELIVERED:
        return TransitionResult.REJECTED_TERMINAL
    if current is OrderStatus.PENDING and target is OrderStatus.CANCELLED:
        return TransitionResult.REJECTED_IN_TRANSIT
    return TransitionResult.ALLOWED


def ensure_transition(current: OrderStatus, target: OrderStatus) -> None:
    """
    Raise if ``current -> target`` is not permitted.

    Raises:
        InvalidTransitionError: With a message describing the rejection
    """
    result = check_transition(current, target)
    if not result.allowed:
        raise InvalidTransitionError(REJECTION_MESSAGES[result])
