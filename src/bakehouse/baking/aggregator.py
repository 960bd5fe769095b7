"""BakingQueueAggregator: production queue plus the completion cascade.

Marking a product completed can promote many orders at once: every pending
order whose products are now all completed moves to ``baking``. Promotion is
one-way; unmarking a product or resetting the session never moves an order
back.
"""

import threading
from contextlib import contextmanager

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from pydantic import BaseModel, Field

from bakehouse.baking import queue as baking_queue
from bakehouse.baking.session import CURRENT_SESSION_ID, BakingSession
from bakehouse.domain import bakehouse
from bakehouse.errors import BakehouseError
from bakehouse.order.status import OrderStatus
from bakehouse.order.store import BatchFailure, OrderStore
from bakehouse.utils.db import transaction

logger = structlog.get_logger(__name__)

AUTO_BAKING_ACTOR = "auto-baking-system"

# Operator actions on the session run one at a time
_session_lock = threading.RLock()


class PromotionResult(BaseModel):
    product_name: str
    promoted: list[str] = Field(default_factory=list)
    failed: list[BatchFailure] = Field(default_factory=list)


class BakingQueueAggregator:
    def __init__(self, order_store: OrderStore, paid_only: bool | None = None, session_id: str = CURRENT_SESSION_ID):
        self.order_store = order_store
        self.paid_only = order_store.require_payment if paid_only is None else paid_only
        self.session_id = session_id

    def load_session(self) -> BakingSession:
        with transaction(bakehouse):
            try:
                return current_domain.repository_for(BakingSession).get(self.session_id)
            except ObjectNotFoundError:
                return BakingSession.start(self.session_id)

    @contextmanager
    def _editing_session(self):
        """Load the session for a change and persist it when the block succeeds."""
        with _session_lock, bakehouse.domain_context():
            session = self.load_session()
            yield session
            with transaction(bakehouse):
                current_domain.repository_for(BakingSession).add(session)

    @property
    def completed_products(self) -> frozenset[str]:
        return self.load_session().completed

    # -------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------
    def compute_queue(self, orders) -> dict[str, baking_queue.BakingQueueEntry]:
        return baking_queue.compute_queue(orders, self.completed_products, paid_only=self.paid_only)

    def orders_eligible_for_promotion(self, orders, completed=None) -> list:
        completed = self.completed_products if completed is None else completed
        return baking_queue.orders_eligible_for_promotion(orders, completed, paid_only=self.paid_only)

    def preview_completion(self, orders, product_name: str) -> list:
        return baking_queue.orders_affected_by_completion(
            orders, self.completed_products, product_name, paid_only=self.paid_only
        )

    # -------------------------------------------------------------------
    # Operator actions
    # -------------------------------------------------------------------
    def mark_product_completed(self, product_name: str, updated_by: str = AUTO_BAKING_ACTOR) -> PromotionResult:
        product_name = BakingSession.product_key(product_name)
        result = PromotionResult(product_name=product_name)

        with self._editing_session() as session:
            if session.is_completed(product_name):
                logger.info("Product already marked completed", product=product_name)
                return result

            # Decisions come from one snapshot; each promotion then runs on live state
            snapshot = self.order_store.snapshot()
            for order in self.orders_eligible_for_promotion(snapshot, session.completed | {product_name}):
                order_id = str(order.id)
                try:
                    self.order_store.set_status(
                        order_id,
                        OrderStatus.BAKING,
                        updated_by,
                        notes=f"All products completed ({product_name} finished last)",
                    )
                except BakehouseError as exc:
                    result.failed.append(BatchFailure.from_exception(order_id, exc))
                else:
                    result.promoted.append(order_id)

            session.mark_completed(product_name, updated_by, result.promoted)

        logger.info(
            "Product marked completed",
            product=product_name,
            promoted=len(result.promoted),
            failed=len(result.failed),
        )
        return result

    def unmark_product_completed(self, product_name: str) -> bool:
        """Clear a product's flag. Orders already promoted stay where they are."""
        with self._editing_session() as session:
            removed = session.reopen(product_name)

        if removed:
            logger.info("Product completion reopened", product=product_name.strip())
        return removed

    def reset_session(self, reset_by: str | None = None) -> list[str]:
        with self._editing_session() as session:
            cleared = session.reset(reset_by)

        logger.info("Baking session reset", cleared=len(cleared), reset_by=reset_by)
        return cleared
