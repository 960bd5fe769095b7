"""Order status changes: advance, revert, direct set, bulk set and cancel.

Status values arrive as strings in either the canonical or the storefront
document vocabulary and are mapped to ``OrderStatus`` by the handler.
"""

import json

from protean import handle
from protean.fields import Identifier, Integer, String, Text

from bakehouse.domain import bakehouse
from bakehouse.order.order import Order
from bakehouse.order.status import OrderStatus
from bakehouse.order.store import get_order_store
from bakehouse.order.vocabulary import parse_status


@bakehouse.command(part_of="Order")
class AdvanceOrderStatus:
    order_id = Identifier(required=True)
    updated_by = String(required=True, max_length=100)
    notes = String(max_length=500)


@bakehouse.command(part_of="Order")
class RevertOrderStatus:
    order_id = Identifier(required=True)
    updated_by = String(required=True, max_length=100)
    notes = String(max_length=500)


@bakehouse.command(part_of="Order")
class SetOrderStatus:
    """Administrative direct set; forward jumps are bounded by ``max_jump``."""

    order_id = Identifier(required=True)
    status = String(required=True, max_length=30)
    updated_by = String(required=True, max_length=100)
    notes = String(max_length=500)
    max_jump = Integer(min_value=1)


@bakehouse.command(part_of="Order")
class BulkSetOrderStatus:
    order_ids = Text(required=True)  # JSON list of order ids
    status = String(required=True, max_length=30)
    updated_by = String(required=True, max_length=100)
    notes = String(max_length=500)


@bakehouse.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    cancelled_by = String(required=True, max_length=100)


@bakehouse.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(AdvanceOrderStatus)
    def advance_status(self, command):
        return get_order_store().advance(command.order_id, command.updated_by, notes=command.notes)

    @handle(RevertOrderStatus)
    def revert_status(self, command):
        return get_order_store().revert(command.order_id, command.updated_by, notes=command.notes)

    @handle(SetOrderStatus)
    def set_status(self, command):
        status = parse_status(command.status)
        return get_order_store().set_status(
            command.order_id,
            status,
            command.updated_by,
            notes=command.notes or f"Status updated to {status.value}",
            max_jump=command.max_jump,
        )

    @handle(BulkSetOrderStatus)
    def bulk_set_status(self, command):
        order_ids = json.loads(command.order_ids) if isinstance(command.order_ids, str) else command.order_ids
        return get_order_store().bulk_set_status(
            order_ids,
            parse_status(command.status),
            command.updated_by,
            notes=command.notes,
        )

    @handle(CancelOrder)
    def cancel_order(self, command):
        return get_order_store().set_status(
            command.order_id,
            OrderStatus.CANCELLED,
            command.cancelled_by,
            notes=command.reason,
        )
