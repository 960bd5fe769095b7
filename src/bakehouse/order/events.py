"""Order domain events: immutable facts about an order's life.

Events are raised by the Order aggregate and dispatched to projectors (the
order timeline) when the unit of work that persisted the change commits.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from bakehouse.domain import bakehouse


@bakehouse.event(part_of="Order")
class OrderPlaced:
    """A new pre-order was accepted from checkout or created by an admin."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_name = String(required=True, max_length=100)
    customer_email = String(required=True, max_length=254)
    items = Text(required=True)  # JSON list of item dicts
    item_count = Integer(required=True)
    total = Float(required=True)
    delivery_method = String(required=True, max_length=20)
    placed_by = String(required=True, max_length=100)
    placed_at = DateTime(required=True)


@bakehouse.event(part_of="Order")
class OrderStatusChanged:
    """The order moved to a new status and a history entry was appended."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True, max_length=20)
    new_status = String(required=True, max_length=20)
    updated_by = String(required=True, max_length=100)
    notes = String(max_length=500)
    changed_at = DateTime(required=True)


@bakehouse.event(part_of="Order")
class PaymentConfirmed:
    """The payment processor reported that the charge cleared."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_reference = String(max_length=255)
    confirmed_by = String(required=True, max_length=100)
    confirmed_at = DateTime(required=True)


@bakehouse.event(part_of="Order")
class PaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    reported_by = String(required=True, max_length=100)
    failed_at = DateTime(required=True)
