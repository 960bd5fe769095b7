"""Order queries: filtering, sorting and dashboard metrics.

Pure functions over a snapshot of orders; nothing here mutates an order.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from bakehouse.order.order import DeliveryMethod, Order, PaymentStatus
from bakehouse.order.status import HAPPY_PATH, OrderStatus
from bakehouse.order.vocabulary import parse_status

_STATUS_RANK = {status: index for index, status in enumerate((*HAPPY_PATH, OrderStatus.CANCELLED))}


class OrderSortField(Enum):
    CREATED_AT = "created_at"
    TOTAL = "total"
    STATUS = "status"
    CUSTOMER_NAME = "customer_name"


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


class OrderFilters(BaseModel):
    """Admin order-table filters. ``None`` (or ``"all"``) means no restriction."""

    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    delivery_method: DeliveryMethod | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    search: str | None = Field(default=None, max_length=100)

    @field_validator("payment_status", "delivery_method", mode="before")
    @classmethod
    def all_means_any(cls, value):
        if value == "all":
            return None
        return value

    @field_validator("status", mode="before")
    @classmethod
    def parse_status_value(cls, value):
        if value is None or value == "all":
            return None
        return parse_status(value)


def _matches_search(order: Order, needle: str) -> bool:
    return (
        needle in str(order.id).lower()
        or needle in order.customer.name.lower()
        or needle in order.customer.email.lower()
    )


def filter_orders(orders: Iterable[Order], filters: OrderFilters) -> list[Order]:
    filtered = list(orders)

    if filters.status is not None:
        filtered = [order for order in filtered if order.current_status == filters.status]
    if filters.payment_status is not None:
        filtered = [order for order in filtered if order.payment_status == filters.payment_status.value]
    if filters.delivery_method is not None:
        filtered = [order for order in filtered if order.delivery_method == filters.delivery_method.value]
    if filters.date_from is not None:
        filtered = [order for order in filtered if order.created_at >= filters.date_from]
    if filters.date_to is not None:
        filtered = [order for order in filtered if order.created_at <= filters.date_to]
    if filters.search:
        needle = filters.search.strip().lower()
        filtered = [order for order in filtered if _matches_search(order, needle)]

    return filtered


def _sort_key(field: OrderSortField):
    if field == OrderSortField.CREATED_AT:
        return lambda order: order.created_at
    if field == OrderSortField.TOTAL:
        return lambda order: order.total
    if field == OrderSortField.STATUS:
        return lambda order: _STATUS_RANK[order.current_status]
    return lambda order: order.customer.name.lower()


def sort_orders(
    orders: Iterable[Order],
    field: OrderSortField | str = OrderSortField.CREATED_AT,
    direction: SortDirection | str = SortDirection.DESC,
) -> list[Order]:
    """Sort orders for the admin table; newest first unless told otherwise."""
    field = OrderSortField(field)
    direction = SortDirection(direction)
    return sorted(orders, key=_sort_key(field), reverse=direction == SortDirection.DESC)


class PopularItem(BaseModel):
    product_name: str
    quantity: int


class OrderMetrics(BaseModel):
    total_orders: int = 0
    total_revenue: float = 0.0
    average_order_value: float = 0.0
    status_counts: dict[str, int] = Field(default_factory=dict)
    payment_status_counts: dict[str, int] = Field(default_factory=dict)
    delivery_method_counts: dict[str, int] = Field(default_factory=dict)
    unique_customers: int = 0
    pending_baking_orders: int = 0
    popular_items: list[PopularItem] = Field(default_factory=list)


def status_counts(orders: Iterable[Order]) -> dict[str, int]:
    """Count per status, listing every status even when none are in it."""
    counts = Counter(order.current_status for order in orders)
    return {status.value: counts.get(status, 0) for status in OrderStatus}


def popular_items(orders: Iterable[Order], limit: int = 5) -> list[PopularItem]:
    """Best-selling products by quantity across non-cancelled orders."""
    quantities: Counter[str] = Counter()
    for order in orders:
        if order.current_status == OrderStatus.CANCELLED:
            continue
        for item in order.items:
            quantities[item.product_name] += item.quantity

    ranked = sorted(quantities.items(), key=lambda pair: (-pair[1], pair[0]))
    return [PopularItem(product_name=name, quantity=quantity) for name, quantity in ranked[:limit]]


def calculate_order_metrics(orders: Iterable[Order]) -> OrderMetrics:
    """Dashboard aggregation.

    Revenue counts paid orders only, but the average is taken over every
    order so that unpaid checkouts pull it down.
    """
    orders = list(orders)
    total_orders = len(orders)
    total_revenue = sum(order.total for order in orders if order.payment_confirmed)

    return OrderMetrics(
        total_orders=total_orders,
        total_revenue=total_revenue,
        average_order_value=total_revenue / total_orders if total_orders else 0.0,
        status_counts=status_counts(orders),
        payment_status_counts=dict(Counter(order.payment_status for order in orders)),
        delivery_method_counts=dict(Counter(order.delivery_method for order in orders)),
        unique_customers=len({order.customer.email for order in orders}),
        pending_baking_orders=sum(
            1 for order in orders if order.current_status == OrderStatus.PENDING and order.payment_confirmed
        ),
        popular_items=popular_items(orders),
    )
