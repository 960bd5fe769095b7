"""Order placement: command and handler."""

import json

from protean import handle
from protean.fields import Boolean, Date, Identifier, String, Text

from bakehouse.domain import bakehouse
from bakehouse.order.order import DeliveryMethod, Order
from bakehouse.order.store import get_order_store


@bakehouse.command(part_of="Order")
class PlaceOrder:
    """Accept a new pre-order from checkout or from an admin."""

    order_id = Identifier()
    customer_name = String(required=True, max_length=100)
    customer_email = String(required=True, max_length=254)
    customer_phone = String(max_length=30)
    items = Text(required=True)  # JSON list of item dicts
    delivery_method = String(max_length=20, choices=DeliveryMethod, default=DeliveryMethod.PICKUP.value)
    delivery_date = Date()
    customer_notes = String(max_length=1000)
    placed_by = String(max_length=100, default="checkout")
    source = String(max_length=50, default="website")
    payment_confirmed = Boolean(default=False)  # admin-created orders are taken as already paid


@bakehouse.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        store = get_order_store()
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        order = Order.create(
            order_id=command.order_id or store.next_order_id(),
            customer={
                "name": command.customer_name,
                "email": command.customer_email,
                "phone": command.customer_phone,
            },
            items_data=items_data,
            placed_by=command.placed_by,
            delivery_method=command.delivery_method,
            shipping_fee=store.config.shipping_fee,
            delivery_date=command.delivery_date,
            customer_notes=command.customer_notes,
            source=command.source,
        )
        store.add(order)
        if command.payment_confirmed:
            store.confirm_payment(str(order.id), None, command.placed_by)
        return str(order.id)
