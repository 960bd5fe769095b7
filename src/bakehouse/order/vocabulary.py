"""Boundary mapping between external status vocabularies and ``OrderStatus``.

The storefront's persisted documents speak a seven-state vocabulary
(pending, confirmed, preparing, ready, out_for_delivery, delivered,
cancelled). Inside the engine only the canonical ``OrderStatus`` exists, so
every status string crossing the boundary goes through ``parse_status`` and
every status leaving for storage goes through ``to_document_status``.
"""

from bakehouse.errors import UnknownStatusError
from bakehouse.order.status import OrderStatus

_DOCUMENT_TO_CANONICAL = {
    "pending": OrderStatus.PENDING,
    "confirmed": OrderStatus.PENDING,  # paid, waiting for the oven
    "preparing": OrderStatus.BAKING,
    "ready": OrderStatus.READY,
    "out_for_delivery": OrderStatus.PACKED,
    "delivered": OrderStatus.DELIVERED,
    "cancelled": OrderStatus.CANCELLED,
}

_CANONICAL_TO_DOCUMENT = {
    OrderStatus.PENDING: "pending",
    OrderStatus.BAKING: "preparing",
    OrderStatus.READY: "ready",
    OrderStatus.PACKED: "out_for_delivery",
    OrderStatus.DELIVERED: "delivered",
    OrderStatus.CANCELLED: "cancelled",
}


def parse_status(value) -> OrderStatus:
    """Accept an ``OrderStatus`` or a status string from either vocabulary."""
    if isinstance(value, OrderStatus):
        return value
    if not isinstance(value, str):
        raise UnknownStatusError(str(value))

    key = value.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return OrderStatus(key)
    except ValueError:
        pass
    try:
        return _DOCUMENT_TO_CANONICAL[key]
    except KeyError:
        raise UnknownStatusError(value) from None


def to_document_status(status: OrderStatus) -> str:
    return _CANONICAL_TO_DOCUMENT[status]


def is_known_status(value) -> bool:
    try:
        parse_status(value)
    except UnknownStatusError:
        return False
    return True
