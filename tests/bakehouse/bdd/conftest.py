"""Shared BDD fixtures and step definitions for the baking board."""

import pytest
from pytest_bdd import given, parsers, then

from bakehouse.errors import InvalidTransitionError
from bakehouse.order.status import OrderStatus


@pytest.fixture()
def orders():
    """Scenario order labels mapped to the ids the engine assigned."""
    return {}


@pytest.fixture()
def error():
    """Container for captured status-change errors."""
    return {"exc": None}


def _place(engine, orders, label, customer, items, paid=True):
    order_id = engine.place_order(
        customer={"name": customer, "email": f"{customer.lower()}@example.com"},
        items=items,
    )
    if paid:
        engine.confirm_payment(order_id, payment_reference=f"pi_{label}")
    orders[label] = order_id
    return order_id


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a paid order "{label}" from "{customer}" for {quantity:d} "{product}"'))
def paid_order(engine, orders, label, customer, quantity, product):
    _place(engine, orders, label, customer, [{"product_name": product, "quantity": quantity}])


@given(
    parsers.cfparse(
        'a paid order "{label}" from "{customer}" with {first_quantity:d} "{first}" and {second_quantity:d} "{second}"'
    )
)
def paid_order_with_two_products(engine, orders, label, customer, first_quantity, first, second_quantity, second):
    _place(
        engine,
        orders,
        label,
        customer,
        [
            {"product_name": first, "quantity": first_quantity},
            {"product_name": second, "quantity": second_quantity},
        ],
    )


@given(parsers.cfparse('an unpaid order "{label}" from "{customer}" for {quantity:d} "{product}"'))
def unpaid_order(engine, orders, label, customer, quantity, product):
    _place(engine, orders, label, customer, [{"product_name": product, "quantity": quantity}], paid=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('order "{label}" is {status}'))
def order_has_status(engine, orders, label, status):
    assert engine.get_order(orders[label]).current_status == OrderStatus(status)


@then(parsers.cfparse('order "{label}" has {count:d} history entries'))
def order_history_length(engine, orders, label, count):
    assert len(engine.status_history(orders[label])) == count


@then(parsers.cfparse('the baking queue holds {quantity:d} "{product}" across {count:d} orders'))
def queue_holds(engine, quantity, product, count):
    entry = engine.baking_queue()[product]
    assert entry.total_quantity == quantity
    assert entry.order_count == count


@then(parsers.cfparse('"{product}" is flagged as completed in the queue'))
def product_flagged(engine, product):
    assert engine.baking_queue()[product].completed is True


@then(parsers.cfparse('"{product}" is not flagged as completed in the queue'))
def product_not_flagged(engine, product):
    assert engine.baking_queue()[product].completed is False


@then("the status change is rejected")
def status_change_rejected(error):
    assert isinstance(error["exc"], InvalidTransitionError)
