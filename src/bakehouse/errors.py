"""Error taxonomy for the Bakehouse domain.

Every error is a protean ``ValidationError`` carrying a ``messages`` dict of
``{field: [message, ...]}``, so callers render business-rule failures the
same way as field validation failures.
"""

from protean.exceptions import ValidationError


class BakehouseError(ValidationError):
    """Base class for every expected, recoverable business failure."""

    def __init__(self, messages: dict[str, list[str]]):
        self.messages = messages
        super().__init__(messages)

    def __str__(self) -> str:
        return "; ".join(msg for msgs in self.messages.values() for msg in msgs)


class OrderNotFoundError(BakehouseError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__({"order_id": [f"Order {order_id} not found"]})


class DuplicateOrderError(BakehouseError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__({"order_id": [f"Order {order_id} already exists"]})


class InvalidTransitionError(BakehouseError):
    """A requested status change violates the transition rules."""

    def __init__(self, current, target, reason: str | None = None):
        self.current = current
        self.target = target
        target_label = target.value if target is not None else "nothing"
        message = reason or f"Cannot transition from {current.value} to {target_label}"
        super().__init__({"status": [message]})


class TerminalStateError(InvalidTransitionError):
    """Advance/revert requested where no next/previous status exists."""

    def __init__(self, current, direction: str):
        self.direction = direction
        super().__init__(
            current,
            None,
            reason=f"Cannot {direction} an order in {current.value} state",
        )


class PaymentRequiredError(InvalidTransitionError):
    def __init__(self, current, target):
        super().__init__(
            current,
            target,
            reason=f"Payment must be confirmed before moving from {current.value} to {target.value}",
        )


class UnknownStatusError(BakehouseError, ValueError):
    def __init__(self, value: str):
        self.value = value
        super().__init__({"status": [f"Unknown order status: {value!r}"]})


class PermissionDeniedError(BakehouseError):
    def __init__(self, admin_id: str, permission: str):
        self.admin_id = admin_id
        self.permission = permission
        super().__init__({"permissions": [f"Admin {admin_id} lacks the '{permission}' permission"]})


class RateLimitExceededError(BakehouseError):
    def __init__(self, key: str, retry_after: float):
        self.key = key
        self.retry_after = retry_after
        super().__init__({"rate_limit": [f"Too many actions for {key}; retry in {retry_after:.1f}s"]})


class PaymentStateError(BakehouseError):
    def __init__(self, order_id: str, payment_status: str, action: str):
        self.order_id = order_id
        self.payment_status = payment_status
        super().__init__({"payment_status": [f"Cannot {action} order {order_id} with payment {payment_status}"]})
