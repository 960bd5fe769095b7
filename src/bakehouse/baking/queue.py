"""Baking queue: per-product production totals derived from active orders.

Nothing here is stored. The queue is rebuilt from the orders on every read;
the only operator state that survives is the set of product names marked
completed, which callers pass in.
"""

from collections.abc import Iterable

from pydantic import BaseModel, Field

from bakehouse.order.order import Order
from bakehouse.order.status import ACTIVE_PRODUCTION_STATUSES, OrderStatus


class BakingQueueEntry(BaseModel):
    product_name: str
    total_quantity: int = 0
    order_count: int = 0
    order_ids: list[str] = Field(default_factory=list)
    customer_names: list[str] = Field(default_factory=list)
    completed: bool = False


def _in_production(order: Order, paid_only: bool) -> bool:
    if order.current_status not in ACTIVE_PRODUCTION_STATUSES:
        return False
    return order.payment_confirmed or not paid_only


def compute_queue(
    orders: Iterable[Order],
    completed: Iterable[str] = (),
    paid_only: bool = True,
) -> dict[str, BakingQueueEntry]:
    """Aggregate what still has to be baked, keyed and sorted by product name.

    Orders are visited in id order so the result does not depend on how the
    caller happened to order its input.
    """
    completed = frozenset(completed)
    queue: dict[str, BakingQueueEntry] = {}

    for order in sorted(orders, key=lambda o: str(o.id)):
        if not _in_production(order, paid_only):
            continue
        for item in order.items:
            entry = queue.get(item.product_name)
            if entry is None:
                entry = queue[item.product_name] = BakingQueueEntry(
                    product_name=item.product_name,
                    completed=item.product_name in completed,
                )
            entry.total_quantity += item.quantity
            # An order listing a product twice still counts once
            if str(order.id) not in entry.order_ids:
                entry.order_count += 1
                entry.order_ids.append(str(order.id))
                entry.customer_names.append(order.customer.name)

    return {name: queue[name] for name in sorted(queue)}


def can_start_baking(order: Order, completed: frozenset[str] | set[str], paid_only: bool = False) -> bool:
    """An order may start baking only once every one of its products is done."""
    if order.current_status != OrderStatus.PENDING:
        return False
    if paid_only and not order.payment_confirmed:
        return False
    return order.product_names <= set(completed)


def orders_eligible_for_promotion(
    orders: Iterable[Order],
    completed: Iterable[str],
    paid_only: bool = False,
) -> list[Order]:
    completed = frozenset(completed)
    return [order for order in sorted(orders, key=lambda o: str(o.id)) if can_start_baking(order, completed, paid_only)]


def orders_affected_by_completion(
    orders: Iterable[Order],
    completed: Iterable[str],
    product_name: str,
    paid_only: bool = False,
) -> list[Order]:
    """Preview which orders would be promoted if ``product_name`` were marked now.

    Uses the same rule as the cascade itself: every pending order that would
    then have all of its products completed, including orders that were
    already fully covered before this product.
    """
    return orders_eligible_for_promotion(orders, {*completed, product_name.strip()}, paid_only=paid_only)


def total_baking_items(queue: dict[str, BakingQueueEntry]) -> int:
    return sum(entry.total_quantity for entry in queue.values())
