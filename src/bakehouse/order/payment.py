"""Order payment: commands and handler.

The payment processor's webhook reports the outcome of a checkout. A
confirmed payment is what admits an order into the baking queue; it is not a
status change and leaves the status history untouched.
"""

from protean import handle
from protean.fields import Identifier, String

from bakehouse.domain import bakehouse
from bakehouse.order.order import Order
from bakehouse.order.store import get_order_store


@bakehouse.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    payment_reference = String(max_length=255)
    confirmed_by = String(max_length=100, default="stripe_webhook")


@bakehouse.command(part_of="Order")
class RecordPaymentFailure:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    reported_by = String(max_length=100, default="stripe_webhook")


@bakehouse.command_handler(part_of=Order)
class PaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        return get_order_store().confirm_payment(
            command.order_id,
            command.payment_reference,
            command.confirmed_by,
        )

    @handle(RecordPaymentFailure)
    def record_payment_failure(self, command):
        return get_order_store().record_payment_failure(
            command.order_id,
            command.reason,
            command.reported_by,
        )
