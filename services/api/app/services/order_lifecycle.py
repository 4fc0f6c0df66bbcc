from __future__ import annotations

from services.api.app.models.order import OrderStatus, PaymentMethod

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.PROGRESS: frozenset(
        {OrderStatus.READY, OrderStatus.COMPLETED, OrderStatus.CANCELLED}
    ),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

PAYMENT_EDITABLE = frozenset({OrderStatus.PENDING, OrderStatus.PROGRESS})


class OrderLifecycleError(Exception):
    """Base class for order status / payment update errors."""


class InvalidStatusTransitionError(OrderLifecycleError):
    def __init__(self, current: OrderStatus, requested: OrderStatus) -> None:
        super().__init__(f"Cannot move order from {current.value} to {requested.value}")
        self.current = current
        self.requested = requested


class PaymentMethodLockedError(OrderLifecycleError):
    def __init__(self, current: OrderStatus) -> None:
        super().__init__(
            f"Payment method can only be updated for pending or in-progress orders (order is {current.value})"
        )
        self.current = current


class PaymentMethodRequiredError(OrderLifecycleError):
    def __init__(self) -> None:
        super().__init__("Payment method must be set before completing an order")


def plan_update(
    current: OrderStatus,
    current_payment: PaymentMethod | None,
    requested_status: OrderStatus | None,
    requested_payment: PaymentMethod | None,
) -> tuple[OrderStatus, PaymentMethod | None]:
    """Validate a status/payment update and return the resulting (status, payment)."""

    new_status = current
    if requested_status is not None and requested_status != current:
        if requested_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(current, requested_status)
        new_status = requested_status

    new_payment = current_payment
    if requested_payment is not None and requested_payment != current_payment:
        # Payment rides along with a status change; on its own it is only editable early.
        if new_status == current and current not in PAYMENT_EDITABLE:
            raise PaymentMethodLockedError(current)
        new_payment = requested_payment

    if new_status == OrderStatus.COMPLETED and new_payment is None:
        raise PaymentMethodRequiredError()

    return new_status, new_payment
