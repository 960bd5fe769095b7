"""Order status vocabulary and transition rules.

State Machine:
    PENDING → BAKING → READY → PACKED → DELIVERED
    {PENDING, BAKING, READY, PACKED} → CANCELLED (absorbing)

Every function here is a pure decision: it answers whether a move is legal
and never raises. Rejecting an illegal command is the store's job.
"""

from enum import Enum


class OrderStatus(Enum):
    PENDING = "pending"
    BAKING = "baking"
    READY = "ready"
    PACKED = "packed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


HAPPY_PATH = (
    OrderStatus.PENDING,
    OrderStatus.BAKING,
    OrderStatus.READY,
    OrderStatus.PACKED,
    OrderStatus.DELIVERED,
)

# Statuses from which an order may still be cancelled
_CANCELLABLE_STATUSES = {
    OrderStatus.PENDING,
    OrderStatus.BAKING,
    OrderStatus.READY,
    OrderStatus.PACKED,
}

# Statuses that count toward the baking queue
ACTIVE_PRODUCTION_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.BAKING})

DEFAULT_MAX_JUMP = 2


def _position(status: OrderStatus) -> int | None:
    try:
        return HAPPY_PATH.index(status)
    except ValueError:
        return None


def next_status(current: OrderStatus) -> OrderStatus | None:
    position = _position(current)
    if position is None or position == len(HAPPY_PATH) - 1:
        return None
    return HAPPY_PATH[position + 1]


def previous_status(current: OrderStatus) -> OrderStatus | None:
    position = _position(current)
    if position is None or position == 0:
        return None
    return HAPPY_PATH[position - 1]


def can_advance(current: OrderStatus) -> bool:
    return next_status(current) is not None


def can_revert(current: OrderStatus) -> bool:
    return previous_status(current) is not None


def can_cancel(current: OrderStatus) -> bool:
    """Delivered orders are final; cancelled orders cannot be cancelled twice."""
    return current in _CANCELLABLE_STATUSES


def can_jump_to(current: OrderStatus, target: OrderStatus, max_jump: int = DEFAULT_MAX_JUMP) -> bool:
    """Decide an administrative direct-set from ``current`` to ``target``.

    Forward moves are bounded by ``max_jump`` steps, backward moves are
    unbounded, and cancellation is allowed from any cancellable status.
    Nothing leaves ``cancelled`` and setting the current status is not a move.
    """
    if target == OrderStatus.CANCELLED:
        return can_cancel(current)

    current_position = _position(current)
    target_position = _position(target)
    if current_position is None or target_position is None:
        return False

    steps = target_position - current_position
    if steps == 0:
        return False
    return steps <= max_jump


def is_forward(current: OrderStatus, target: OrderStatus) -> bool:
    current_position = _position(current)
    target_position = _position(target)
    if current_position is None or target_position is None:
        return False
    return target_position > current_position


class StatusTransitionPolicy:
    """Transition rules bound to the configured forward-jump limit."""

    def __init__(self, max_jump: int = DEFAULT_MAX_JUMP):
        if max_jump < 1:
            raise ValueError("max_jump must be at least 1")
        self.max_jump = max_jump

    def allows(self, current: OrderStatus, target: OrderStatus, max_jump: int | None = None) -> bool:
        return can_jump_to(current, target, self.max_jump if max_jump is None else max_jump)

    can_advance = staticmethod(can_advance)
    can_revert = staticmethod(can_revert)
    can_cancel = staticmethod(can_cancel)
    next_status = staticmethod(next_status)
    previous_status = staticmethod(previous_status)
