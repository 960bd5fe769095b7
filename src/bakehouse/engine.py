"""OrderFulfillmentEngine: the public entry point to the bakehouse core.

Installs the configuration and order store the command handlers work with,
sends commands through the bakehouse domain and serves the read models.

Usage:
    engine = OrderFulfillmentEngine.from_env()
    order_id = engine.place_order(customer={...}, items=[...])
    engine.confirm_payment(order_id)
    engine.mark_product_baking_complete("Chocolate Chip")
"""

import json
from enum import Enum

import structlog

from bakehouse.baking.aggregator import AUTO_BAKING_ACTOR, BakingQueueAggregator, PromotionResult
from bakehouse.baking.completion import MarkProductBaked, ResetBakingSession, UnmarkProductBaked
from bakehouse.baking.queue import BakingQueueEntry, total_baking_items
from bakehouse.config import BakehouseConfig, get_config, set_config
from bakehouse.domain import bakehouse
from bakehouse.order.order import DeliveryMethod, Order, StatusHistoryEntry
from bakehouse.order.payment import ConfirmPayment, RecordPaymentFailure
from bakehouse.order.placement import PlaceOrder
from bakehouse.order.queries import (
    OrderFilters,
    OrderMetrics,
    OrderSortField,
    SortDirection,
    calculate_order_metrics,
    filter_orders,
    sort_orders,
)
from bakehouse.order.status_changes import (
    AdvanceOrderStatus,
    BulkSetOrderStatus,
    CancelOrder,
    RevertOrderStatus,
    SetOrderStatus,
)
from bakehouse.order.store import BulkStatusResult, OrderStore, set_order_store
from bakehouse.projections.order_timeline import OrderTimeline, timeline_for
from bakehouse.utils.db import transaction
from bakehouse.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


def _text(value) -> str:
    return value.value if isinstance(value, Enum) else value


class OrderFulfillmentEngine:
    """One engine per process: building it installs its config and order store."""

    def __init__(self, config: BakehouseConfig | None = None):
        self.config = config or get_config()
        set_config(self.config)
        self.store = OrderStore(self.config)
        set_order_store(self.store)
        self.aggregator = BakingQueueAggregator(self.store)

    @classmethod
    def from_env(cls, environ=None) -> "OrderFulfillmentEngine":
        """Build an engine from ``BAKEHOUSE_*`` variables, set up logging and the domain."""
        config = BakehouseConfig.from_env(environ)
        configure_logging(config)
        bakehouse.init()
        logger.info(
            "Engine configured",
            env=config.env,
            max_jump=config.max_jump,
            require_payment=config.require_payment,
        )
        return cls(config)

    # -------------------------------------------------------------------
    # Messaging
    # -------------------------------------------------------------------
    def process(self, command):
        """Send a command to its handler and return the handler's result."""
        logger.debug("Processing command", command=type(command).__name__)
        with bakehouse.domain_context():
            return bakehouse.process(command, asynchronous=False)

    # -------------------------------------------------------------------
    # Command shortcuts
    # -------------------------------------------------------------------
    def place_order(
        self,
        customer: dict,
        items: list[dict],
        delivery_method: DeliveryMethod | str = DeliveryMethod.PICKUP,
        **kwargs,
    ) -> str:
        return self.process(
            PlaceOrder(
                customer_name=customer.get("name"),
                customer_email=customer.get("email"),
                customer_phone=customer.get("phone"),
                items=json.dumps(items),
                delivery_method=_text(delivery_method),
                **kwargs,
            )
        )

    def advance_status(self, order_id: str, updated_by: str, notes: str | None = None) -> Order:
        return self.process(AdvanceOrderStatus(order_id=order_id, updated_by=updated_by, notes=notes))

    def revert_status(self, order_id: str, updated_by: str, notes: str | None = None) -> Order:
        return self.process(RevertOrderStatus(order_id=order_id, updated_by=updated_by, notes=notes))

    def set_status(self, order_id: str, status, updated_by: str, notes=None, max_jump=None) -> Order:
        return self.process(
            SetOrderStatus(
                order_id=order_id,
                status=_text(status),
                updated_by=updated_by,
                notes=notes,
                max_jump=max_jump,
            )
        )

    def bulk_set_status(self, order_ids: list[str], status, updated_by: str, notes=None) -> BulkStatusResult:
        return self.process(
            BulkSetOrderStatus(
                order_ids=json.dumps(list(order_ids)),
                status=_text(status),
                updated_by=updated_by,
                notes=notes,
            )
        )

    def cancel_order(self, order_id: str, reason: str, cancelled_by: str) -> Order:
        return self.process(CancelOrder(order_id=order_id, reason=reason, cancelled_by=cancelled_by))

    def confirm_payment(self, order_id: str, payment_reference=None, confirmed_by="stripe_webhook") -> Order:
        return self.process(
            ConfirmPayment(order_id=order_id, payment_reference=payment_reference, confirmed_by=confirmed_by)
        )

    def record_payment_failure(self, order_id: str, reason: str, reported_by="stripe_webhook") -> Order:
        return self.process(RecordPaymentFailure(order_id=order_id, reason=reason, reported_by=reported_by))

    def mark_product_baking_complete(self, product_name: str, updated_by=AUTO_BAKING_ACTOR) -> PromotionResult:
        return self.process(MarkProductBaked(product_name=product_name, updated_by=updated_by))

    def unmark_product_baking_complete(self, product_name: str) -> bool:
        return self.process(UnmarkProductBaked(product_name=product_name))

    def reset_baking_session(self, reset_by: str) -> list[str]:
        return self.process(ResetBakingSession(reset_by=reset_by))

    # -------------------------------------------------------------------
    # Read models
    # -------------------------------------------------------------------
    def get_order(self, order_id: str) -> Order:
        return self.store.get(order_id)

    def snapshot(self) -> tuple[Order, ...]:
        return self.store.snapshot()

    def completed_products(self) -> frozenset[str]:
        return self.aggregator.completed_products

    def baking_queue(self) -> dict[str, BakingQueueEntry]:
        return self.aggregator.compute_queue(self.store.snapshot())

    def total_baking_items(self) -> int:
        return total_baking_items(self.baking_queue())

    def preview_completion(self, product_name: str) -> list[str]:
        """Ids of the orders that marking ``product_name`` now would promote."""
        return [str(order.id) for order in self.aggregator.preview_completion(self.store.snapshot(), product_name)]

    def status_history(self, order_id: str) -> list[StatusHistoryEntry]:
        return self.store.get(order_id).history

    def timeline(self, order_id: str) -> list[OrderTimeline]:
        with self.store.lock_for(order_id), transaction(bakehouse):
            return timeline_for(order_id)

    def metrics(self) -> OrderMetrics:
        return calculate_order_metrics(self.store.snapshot())

    def find_orders(
        self,
        filters: OrderFilters | None = None,
        sort: OrderSortField | str = OrderSortField.CREATED_AT,
        direction: SortDirection | str = SortDirection.DESC,
    ) -> list[Order]:
        orders = filter_orders(self.store.snapshot(), filters or OrderFilters())
        return sort_orders(orders, sort, direction)
