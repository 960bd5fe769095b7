"""OrderStore: serialized access to the Order repository.

Every mutation runs inside the affected order's lock for the whole load,
validate, mutate and persist sequence, so two concurrent commands on the same
order are serialized and the second one sees the first one's result. Each
write commits in its own unit of work before the order lock is released;
that commit is also when the order's events reach the projectors.

Orders handed out by the store are freshly loaded from the repository.
Changing one does not change what is stored.
"""

import threading
from collections.abc import Callable
from contextlib import contextmanager
from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from pydantic import BaseModel, Field

from bakehouse.config import BakehouseConfig, get_config
from bakehouse.domain import bakehouse
from bakehouse.errors import (
    BakehouseError,
    DuplicateOrderError,
    OrderNotFoundError,
    TerminalStateError,
)
from bakehouse.order.order import Order
from bakehouse.order.status import OrderStatus, StatusTransitionPolicy, next_status, previous_status
from bakehouse.utils.db import transaction

logger = structlog.get_logger(__name__)


class BatchFailure(BaseModel):
    """One item of a batch operation that did not go through."""

    order_id: str
    error: str
    reason: str

    @classmethod
    def from_exception(cls, order_id: str, exc: BakehouseError) -> "BatchFailure":
        return cls(order_id=order_id, error=type(exc).__name__, reason=str(exc))


class BulkStatusResult(BaseModel):
    succeeded: list[str] = Field(default_factory=list)
    failed: list[BatchFailure] = Field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)


class OrderNumberSequence:
    """Human-readable order numbers: ``FS`` + ``YYMMDD`` + per-day counter."""

    def __init__(self, prefix: str = "FS"):
        self.prefix = prefix
        self._lock = threading.Lock()
        self._day = None
        self._counter = 0

    def next_id(self, today=None) -> str:
        today = today or datetime.now(UTC).date()
        with self._lock:
            if today != self._day:
                self._day = today
                self._counter = 0
            self._counter += 1
            return f"{self.prefix}{today.strftime('%y%m%d')}{self._counter:03d}"


def _detached(order: Order) -> Order:
    """Load the line items and history so the order no longer needs the repository."""
    order.items  # noqa: B018
    order.status_history  # noqa: B018
    return order


class OrderStore:
    def __init__(self, config: BakehouseConfig | None = None, sequence: OrderNumberSequence | None = None):
        self.config = config or get_config()
        self.policy = StatusTransitionPolicy(max_jump=self.config.max_jump)
        self.require_payment = self.config.require_payment
        self.sequence = sequence or OrderNumberSequence()
        self._order_locks: dict[str, threading.RLock] = {}
        self._lock = threading.RLock()

    @contextmanager
    def _repository(self):
        with self._lock, transaction(bakehouse):
            yield current_domain.repository_for(Order)

    # -------------------------------------------------------------------
    # Registration and lookup
    # -------------------------------------------------------------------
    def next_order_id(self) -> str:
        with self._lock:
            while True:
                order_id = self.sequence.next_id()
                if order_id not in self._order_locks:
                    return order_id

    def add(self, order: Order) -> Order:
        order_id = str(order.id)
        with self._lock:
            if order_id in self._order_locks:
                raise DuplicateOrderError(order_id)
            with self._repository() as repo:
                repo.add(order)
            self._order_locks[order_id] = threading.RLock()

        logger.info("Order added", order_id=order_id, items=len(order.items), total=order.total)
        return order

    def get(self, order_id: str) -> Order:
        with self.lock_for(order_id), self._repository() as repo:
            try:
                return _detached(repo.get(order_id))
            except ObjectNotFoundError:
                raise OrderNotFoundError(order_id) from None

    def __contains__(self, order_id: str) -> bool:
        with self._lock:
            return order_id in self._order_locks

    def __len__(self) -> int:
        with self._lock:
            return len(self._order_locks)

    def snapshot(self) -> tuple[Order, ...]:
        """Every order, all loaded at one point in time."""
        with self._lock:
            entries = sorted(self._order_locks.items())

        # Order locks are taken in id order and never while holding the store lock
        locks = [lock for _, lock in entries]
        for lock in locks:
            lock.acquire()
        try:
            with self._repository() as repo:
                return tuple(_detached(repo.get(order_id)) for order_id, _ in entries)
        finally:
            for lock in reversed(locks):
                lock.release()

    def lock_for(self, order_id: str) -> threading.RLock:
        with self._lock:
            try:
                return self._order_locks[order_id]
            except KeyError:
                raise OrderNotFoundError(order_id) from None

    def _save(self, order: Order) -> None:
        with self._repository() as repo:
            repo.add(order)

    # -------------------------------------------------------------------
    # Status mutation
    # -------------------------------------------------------------------
    def _transition(
        self,
        order_id: str,
        target_for: Callable[[OrderStatus], OrderStatus],
        updated_by: str,
        notes: str | None = None,
        max_jump: int | None = None,
    ) -> Order:
        with self.lock_for(order_id), bakehouse.domain_context():
            order = self.get(order_id)
            previous = order.current_status
            try:
                target = target_for(previous)
                order.transition_to(
                    target,
                    updated_by,
                    self.policy,
                    notes=notes,
                    max_jump=max_jump,
                    require_payment=self.require_payment,
                )
            except BakehouseError as exc:
                logger.warning(
                    "Status change rejected",
                    order_id=order_id,
                    current=previous.value,
                    reason=str(exc),
                )
                raise
            self._save(order)

        logger.info(
            "Order status changed",
            order_id=order_id,
            previous=previous.value,
            status=target.value,
            updated_by=updated_by,
        )
        return order

    def set_status(
        self,
        order_id: str,
        new_status: OrderStatus,
        updated_by: str,
        notes: str | None = None,
        max_jump: int | None = None,
    ) -> Order:
        return self._transition(order_id, lambda current: new_status, updated_by, notes=notes, max_jump=max_jump)

    def advance(self, order_id: str, updated_by: str, notes: str | None = None) -> Order:
        def forward(current):
            target = next_status(current)
            if target is None:
                raise TerminalStateError(current, "advance")
            return target

        return self._transition(order_id, forward, updated_by, notes=notes, max_jump=1)

    def revert(self, order_id: str, updated_by: str, notes: str | None = None) -> Order:
        def backward(current):
            target = previous_status(current)
            if target is None:
                raise TerminalStateError(current, "revert")
            return target

        return self._transition(order_id, backward, updated_by, notes=notes)

    def bulk_set_status(
        self,
        order_ids: list[str],
        new_status: OrderStatus,
        updated_by: str,
        notes: str | None = None,
    ) -> BulkStatusResult:
        result = BulkStatusResult()
        for order_id in order_ids:
            try:
                self.set_status(order_id, new_status, updated_by, notes=notes)
            except BakehouseError as exc:
                result.failed.append(BatchFailure.from_exception(order_id, exc))
            else:
                result.succeeded.append(order_id)

        if result.has_failures:
            logger.warning(
                "Bulk status update partially failed",
                status=new_status.value,
                succeeded=len(result.succeeded),
                failed=len(result.failed),
            )
        return result

    # -------------------------------------------------------------------
    # Payment signal
    # -------------------------------------------------------------------
    def confirm_payment(self, order_id: str, payment_reference: str | None, confirmed_by: str) -> Order:
        with self.lock_for(order_id), bakehouse.domain_context():
            order = self.get(order_id)
            changed = order.confirm_payment(payment_reference, confirmed_by)
            if changed:
                self._save(order)

        if changed:
            logger.info("Payment confirmed", order_id=order_id, confirmed_by=confirmed_by)
        else:
            logger.info("Payment already confirmed", order_id=order_id)
        return order

    def record_payment_failure(self, order_id: str, reason: str, reported_by: str) -> Order:
        with self.lock_for(order_id), bakehouse.domain_context():
            order = self.get(order_id)
            order.record_payment_failure(reason, reported_by)
            self._save(order)

        logger.warning("Payment failed", order_id=order_id, reason=reason)
        return order


_store_instance = None


def get_order_store() -> OrderStore:
    """Return the order store used by the command handlers (singleton)."""
    global _store_instance
    if _store_instance is None:
        _store_instance = OrderStore(get_config())
    return _store_instance


def set_order_store(store: OrderStore) -> None:
    global _store_instance
    _store_instance = store


def reset_order_store() -> None:
    """Forget the order store singleton (useful for testing)."""
    global _store_instance
    _store_instance = None
