"""Order timeline: append-only audit trail of all order events."""

import json
import uuid

from protean.core.projector import on
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from bakehouse.domain import bakehouse
from bakehouse.order.events import OrderPlaced, OrderStatusChanged, PaymentConfirmed, PaymentFailed
from bakehouse.order.order import Order


@bakehouse.projection
class OrderTimeline:
    entry_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    event_type = String(required=True, max_length=50)
    description = String(required=True, max_length=1000)
    occurred_at = DateTime(required=True)
    actor = String(max_length=100)


def _add_entry(order_id, event_type, description, occurred_at, actor=None):
    current_domain.repository_for(OrderTimeline).add(
        OrderTimeline(
            entry_id=str(uuid.uuid4()),
            order_id=order_id,
            event_type=event_type,
            description=description,
            occurred_at=occurred_at,
            actor=actor,
        )
    )


def timeline_for(order_id: str) -> list[OrderTimeline]:
    """Entries for one order, oldest first."""
    repo = current_domain.repository_for(OrderTimeline)
    entries = repo._dao.query.filter(order_id=order_id).all().items
    return sorted(entries, key=lambda entry: entry.occurred_at)


@bakehouse.projector(projector_for=OrderTimeline, aggregates=[Order])
class OrderTimelineProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        item_count = len(json.loads(event.items))
        _add_entry(
            event.order_id,
            "OrderPlaced",
            f"Order placed by {event.customer_name} ({item_count} item(s), total {event.total:.2f})",
            event.placed_at,
            actor=event.placed_by,
        )

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        description = f"Status changed from {event.previous_status} to {event.new_status}"
        if event.notes:
            description = f"{description}: {event.notes}"
        _add_entry(event.order_id, "OrderStatusChanged", description, event.changed_at, actor=event.updated_by)

    @on(PaymentConfirmed)
    def on_payment_confirmed(self, event):
        description = "Payment confirmed"
        if event.payment_reference:
            description = f"{description} (ref: {event.payment_reference})"
        _add_entry(event.order_id, "PaymentConfirmed", description, event.confirmed_at, actor=event.confirmed_by)

    @on(PaymentFailed)
    def on_payment_failed(self, event):
        _add_entry(
            event.order_id,
            "PaymentFailed",
            f"Payment failed: {event.reason}",
            event.failed_at,
            actor=event.reported_by,
        )
