"""Order aggregate (CQRS): one customer's cookie pre-order.

The aggregate guards its own invariants: line items are fixed at creation,
the status only changes through ``transition_to`` and every change appends
exactly one entry to the append-only ``status_history``. Payment is tracked
separately from the status; a confirmed payment is what lets an order leave
``pending`` for the oven.

State Machine:
    PENDING → BAKING → READY → PACKED → DELIVERED
    {PENDING, BAKING, READY, PACKED} → CANCELLED
"""

import json
from datetime import UTC, date, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Float, HasMany, Integer, String, ValueObject

from bakehouse.domain import bakehouse
from bakehouse.errors import InvalidTransitionError, PaymentRequiredError, PaymentStateError
from bakehouse.order.events import OrderPlaced, OrderStatusChanged, PaymentConfirmed, PaymentFailed
from bakehouse.order.status import OrderStatus, StatusTransitionPolicy, is_forward


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class DeliveryMethod(Enum):
    PICKUP = "pickup"
    SHIPPING = "shipping"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@bakehouse.value_object(part_of="Order")
class CustomerInfo:
    """Who the order is for. Used for display and grouping, never for auth."""

    name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    phone = String(max_length=30)

    @classmethod
    def normalised(cls, name: str, email: str, phone: str | None = None) -> "CustomerInfo":
        return cls(
            name=(name or "").strip(),
            email=(email or "").strip().lower(),
            phone=(phone or "").strip() or None,
        )

    @invariant.post
    def email_must_look_like_an_address(self):
        email = self.email or ""
        if email.count("@") != 1 or any(ch.isspace() for ch in email):
            raise ValidationError({"email": [f"Invalid email address: {email!r}"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@bakehouse.entity(part_of="Order")
class OrderItem:
    """A line item: how many of one product, at the price locked at checkout."""

    product_name = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(default=0.0, min_value=0.0)

    @property
    def line_total(self) -> float:
        return self.quantity * (self.unit_price or 0.0)


@bakehouse.entity(part_of="Order")
class StatusHistoryEntry:
    sequence = Integer(required=True, min_value=0)
    status = String(required=True, max_length=20, choices=OrderStatus)
    timestamp = DateTime(required=True)
    updated_by = String(required=True, max_length=100)
    notes = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@bakehouse.aggregate
class Order:
    customer = ValueObject(CustomerInfo, required=True)
    items = HasMany(OrderItem)
    status = String(max_length=20, choices=OrderStatus, default=OrderStatus.PENDING.value)
    status_history = HasMany(StatusHistoryEntry)
    payment_status = String(max_length=20, choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_reference = String(max_length=255)
    delivery_method = String(max_length=20, choices=DeliveryMethod, default=DeliveryMethod.PICKUP.value)
    shipping_fee = Float(default=0.0, min_value=0.0)
    delivery_date = Date()
    customer_notes = String(max_length=1000)
    admin_notes = String(max_length=1000)
    source = String(max_length=50, default="website")
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id: str,
        customer: dict,
        items_data: list[dict],
        placed_by: str,
        delivery_method: str = DeliveryMethod.PICKUP.value,
        shipping_fee: float = 0.0,
        delivery_date: date | None = None,
        customer_notes: str | None = None,
        source: str = "website",
    ):
        """Create a new pending order with its creation recorded in history.

        Args:
            order_id: Identifier assigned by the store.
            customer: Dict with name, email and optional phone.
            items_data: List of dicts with product_name, quantity, unit_price.
            placed_by: Actor recorded on the first history entry.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        method = DeliveryMethod(delivery_method)
        order = cls(
            id=order_id,
            customer=CustomerInfo.normalised(customer.get("name"), customer.get("email"), customer.get("phone")),
            status=OrderStatus.PENDING.value,
            delivery_method=method.value,
            shipping_fee=shipping_fee if method == DeliveryMethod.SHIPPING else 0.0,
            delivery_date=delivery_date,
            customer_notes=customer_notes,
            source=source,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(
                OrderItem(
                    product_name=str(item_data.get("product_name") or "").strip(),
                    quantity=item_data.get("quantity"),
                    unit_price=item_data.get("unit_price", 0.0),
                )
            )
        order.add_status_history(
            StatusHistoryEntry(
                sequence=0,
                status=OrderStatus.PENDING.value,
                timestamp=now,
                updated_by=placed_by,
                notes="Order placed",
            )
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_name=order.customer.name,
                customer_email=order.customer.email,
                items=json.dumps(
                    [
                        {"product_name": item.product_name, "quantity": item.quantity, "unit_price": item.unit_price}
                        for item in order.items
                    ]
                ),
                item_count=order.item_count,
                total=order.total,
                delivery_method=method.value,
                placed_by=placed_by,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def history(self) -> list:
        """Status history, oldest first."""
        return sorted(self.status_history or [], key=lambda entry: entry.sequence)

    @property
    def payment_confirmed(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    @property
    def subtotal(self) -> float:
        return sum(item.line_total for item in self.items or [])

    @property
    def total(self) -> float:
        return self.subtotal + (self.shipping_fee or 0.0)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items or [])

    @property
    def product_names(self) -> frozenset[str]:
        return frozenset(item.product_name for item in self.items or [])

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def transition_to(
        self,
        target: OrderStatus,
        updated_by: str,
        policy: StatusTransitionPolicy,
        notes: str | None = None,
        max_jump: int | None = None,
        require_payment: bool = True,
    ) -> None:
        current = self.current_status
        if not policy.allows(current, target, max_jump):
            raise InvalidTransitionError(current, target)
        if (
            require_payment
            and current == OrderStatus.PENDING
            and is_forward(current, target)
            and not self.payment_confirmed
        ):
            raise PaymentRequiredError(current, target)

        self._record_status(target, updated_by, notes)

    def _record_status(self, target: OrderStatus, updated_by: str, notes: str | None) -> None:
        now = datetime.now(UTC)
        history = self.history
        # History timestamps never go backwards, even if the wall clock does
        timestamp = max(now, history[-1].timestamp) if history else now

        previous = self.current_status
        self.status = target.value
        self.add_status_history(
            StatusHistoryEntry(
                sequence=len(history),
                status=target.value,
                timestamp=timestamp,
                updated_by=updated_by,
                notes=notes,
            )
        )
        self.updated_at = timestamp
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous.value,
                new_status=target.value,
                updated_by=updated_by,
                notes=notes,
                changed_at=timestamp,
            )
        )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def confirm_payment(self, payment_reference: str | None, confirmed_by: str) -> bool:
        """Mark the order paid. Returns False when it already was (webhook retries)."""
        if self.payment_status == PaymentStatus.PAID.value:
            return False
        if self.payment_status == PaymentStatus.REFUNDED.value:
            raise PaymentStateError(str(self.id), self.payment_status, "confirm payment for")

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.payment_reference = payment_reference
        self.updated_at = now
        self.raise_(
            PaymentConfirmed(
                order_id=str(self.id),
                payment_reference=payment_reference,
                confirmed_by=confirmed_by,
                confirmed_at=now,
            )
        )
        return True

    def record_payment_failure(self, reason: str, reported_by: str) -> None:
        if self.payment_status not in (PaymentStatus.PENDING.value, PaymentStatus.FAILED.value):
            raise PaymentStateError(str(self.id), self.payment_status, "record a payment failure on")

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FAILED.value
        self.updated_at = now
        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                reason=reason,
                reported_by=reported_by,
                failed_at=now,
            )
        )
