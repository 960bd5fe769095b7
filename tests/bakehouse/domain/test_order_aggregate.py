"""Tests for Order aggregate creation, transitions and payment."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError

from bakehouse.errors import InvalidTransitionError, PaymentRequiredError, PaymentStateError
from bakehouse.order.events import OrderPlaced, OrderStatusChanged, PaymentConfirmed, PaymentFailed
from bakehouse.order.order import CustomerInfo, DeliveryMethod, Order, PaymentStatus
from bakehouse.order.status import OrderStatus, StatusTransitionPolicy

POLICY = StatusTransitionPolicy()


def _make_order(**overrides):
    defaults = {
        "order_id": "FS250101001",
        "customer": {"name": "Alice Baker", "email": "Alice@Example.com"},
        "items_data": [
            {"product_name": "Chocolate Chip", "quantity": 2, "unit_price": 65.0},
            {"product_name": "Brownie", "quantity": 1, "unit_price": 80.0},
        ],
        "placed_by": "checkout",
    }
    defaults.update(overrides)
    return Order.create(**defaults)


def _make_paid_order(**overrides):
    order = _make_order(**overrides)
    order.confirm_payment("pi_123", "stripe_webhook")
    order._events.clear()
    return order


class TestOrderCreation:
    def test_starts_pending_with_one_history_entry(self):
        order = _make_order()
        assert order.current_status == OrderStatus.PENDING
        assert order.status == "pending"
        assert len(order.history) == 1
        entry = order.history[0]
        assert entry.sequence == 0
        assert entry.status == "pending"
        assert entry.updated_by == "checkout"
        assert entry.notes == "Order placed"

    def test_normalises_customer_email(self):
        order = _make_order()
        assert order.customer.email == "alice@example.com"

    def test_strips_product_names(self):
        order = _make_order(items_data=[{"product_name": "  Chocolate Chip ", "quantity": 1}])
        assert order.items[0].product_name == "Chocolate Chip"
        assert order.product_names == frozenset({"Chocolate Chip"})

    def test_totals(self):
        order = _make_order()
        assert order.subtotal == 210.0
        assert order.total == 210.0
        assert order.item_count == 3
        assert order.product_names == frozenset({"Chocolate Chip", "Brownie"})

    def test_shipping_fee_applies_to_shipping_orders_only(self):
        shipped = _make_order(delivery_method="shipping", shipping_fee=40.0)
        picked_up = _make_order(delivery_method=DeliveryMethod.PICKUP.value, shipping_fee=40.0)
        assert shipped.total == 250.0
        assert picked_up.shipping_fee == 0.0

    def test_payment_starts_pending(self):
        order = _make_order()
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.payment_confirmed is False

    def test_raises_order_placed(self):
        order = _make_order()
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.total == 210.0
        assert event.item_count == 3
        assert event.__version__ == "v1"

    def test_requires_at_least_one_item(self):
        with pytest.raises(ValidationError) as exc:
            _make_order(items_data=[])
        assert "items" in exc.value.messages

    def test_rejects_non_positive_quantity(self):
        with pytest.raises(ValidationError):
            _make_order(items_data=[{"product_name": "Chip", "quantity": 0}])

    def test_rejects_blank_customer_name(self):
        with pytest.raises(ValidationError):
            _make_order(customer={"name": "   ", "email": "a@example.com"})

    def test_rejects_malformed_email(self):
        with pytest.raises(ValidationError) as exc:
            _make_order(customer={"name": "Alice", "email": "not an email"})
        assert "email" in exc.value.messages


class TestCustomerInfo:
    def test_normalised_strips_and_lowercases(self):
        customer = CustomerInfo.normalised("  Alice ", " ALICE@Example.COM ", "  ")
        assert customer.name == "Alice"
        assert customer.email == "alice@example.com"
        assert customer.phone is None


class TestTransitions:
    def test_forward_transition_appends_history(self):
        order = _make_paid_order()
        order.transition_to(OrderStatus.BAKING, "admin-1", POLICY, notes="Into the oven")
        assert order.current_status == OrderStatus.BAKING
        assert len(order.history) == 2
        latest = order.history[-1]
        assert latest.sequence == 1
        assert latest.status == "baking"
        assert latest.updated_by == "admin-1"
        assert latest.notes == "Into the oven"

    def test_transition_raises_status_changed(self):
        order = _make_paid_order()
        order.transition_to(OrderStatus.BAKING, "admin-1", POLICY)
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "pending"
        assert event.new_status == "baking"

    def test_rejected_transition_leaves_history_untouched(self):
        order = _make_paid_order()
        with pytest.raises(InvalidTransitionError) as exc:
            order.transition_to(OrderStatus.PACKED, "admin-1", POLICY)
        assert exc.value.current == OrderStatus.PENDING
        assert exc.value.target == OrderStatus.PACKED
        assert order.current_status == OrderStatus.PENDING
        assert len(order.history) == 1
        assert order._events == []

    def test_unpaid_order_cannot_leave_pending_forward(self):
        order = _make_order()
        with pytest.raises(PaymentRequiredError):
            order.transition_to(OrderStatus.BAKING, "admin-1", POLICY)
        assert len(order.history) == 1

    def test_unpaid_order_can_be_cancelled(self):
        order = _make_order()
        order.transition_to(OrderStatus.CANCELLED, "admin-1", POLICY)
        assert order.current_status == OrderStatus.CANCELLED

    def test_payment_gate_can_be_disabled(self):
        order = _make_order()
        order.transition_to(OrderStatus.BAKING, "admin-1", POLICY, require_payment=False)
        assert order.current_status == OrderStatus.BAKING

    def test_history_timestamps_never_go_backwards(self):
        order = _make_paid_order()
        future = datetime.now(UTC) + timedelta(hours=1)
        order.history[-1].timestamp = future
        order.transition_to(OrderStatus.BAKING, "admin-1", POLICY)
        assert order.history[-1].timestamp == future


class TestPayment:
    def test_confirm_payment(self):
        order = _make_order()
        order._events.clear()
        assert order.confirm_payment("pi_123", "stripe_webhook") is True
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.payment_reference == "pi_123"
        assert isinstance(order._events[0], PaymentConfirmed)

    def test_confirm_payment_is_idempotent(self):
        order = _make_paid_order()
        assert order.confirm_payment("pi_123", "stripe_webhook") is False
        assert order._events == []

    def test_confirm_payment_does_not_touch_history(self):
        order = _make_paid_order()
        assert len(order.history) == 1

    def test_cannot_confirm_refunded_payment(self):
        order = _make_order()
        order.payment_status = PaymentStatus.REFUNDED.value
        with pytest.raises(PaymentStateError):
            order.confirm_payment("pi_123", "stripe_webhook")

    def test_record_payment_failure(self):
        order = _make_order()
        order._events.clear()
        order.record_payment_failure("card_declined", "stripe_webhook")
        assert order.payment_status == PaymentStatus.FAILED.value
        assert isinstance(order._events[0], PaymentFailed)

    def test_cannot_fail_a_paid_order(self):
        order = _make_paid_order()
        with pytest.raises(PaymentStateError):
            order.record_payment_failure("card_declined", "stripe_webhook")

    def test_failed_payment_can_later_succeed(self):
        order = _make_order()
        order.record_payment_failure("card_declined", "stripe_webhook")
        order.confirm_payment("pi_456", "stripe_webhook")
        assert order.payment_confirmed is True
