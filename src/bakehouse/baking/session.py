"""Baking session aggregate: the operator's "this product is done" flags.

There is one session per bakehouse run, stored under ``CURRENT_SESSION_ID``.
Flags are product names; they only ever change through ``mark_completed``,
``reopen`` and ``reset``.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text

from bakehouse.baking.events import BakingSessionReset, ProductBakingCompleted, ProductBakingReopened
from bakehouse.domain import bakehouse

CURRENT_SESSION_ID = "current"


@bakehouse.aggregate
class BakingSession:
    completed_products = Text(default="[]")  # JSON list of product names
    started_at = DateTime()
    reset_by = String(max_length=100)

    @classmethod
    def start(cls, session_id: str = CURRENT_SESSION_ID):
        return cls(id=session_id, completed_products="[]", started_at=datetime.now(UTC))

    @staticmethod
    def product_key(product_name: str) -> str:
        key = (product_name or "").strip()
        if not key:
            raise ValidationError({"product_name": ["Product name must not be blank"]})
        return key

    @property
    def completed(self) -> frozenset[str]:
        return frozenset(json.loads(self.completed_products or "[]"))

    def is_completed(self, product_name: str) -> bool:
        return self.product_key(product_name) in self.completed

    def _store_completed(self, names) -> None:
        self.completed_products = json.dumps(sorted(names))

    def mark_completed(self, product_name: str, marked_by: str, promoted_order_ids: list[str]) -> bool:
        """Flag a product as done. Returns False if it already was."""
        key = self.product_key(product_name)
        completed = self.completed
        if key in completed:
            return False

        self._store_completed(completed | {key})
        self.raise_(
            ProductBakingCompleted(
                product_name=key,
                marked_by=marked_by,
                promoted_order_ids=json.dumps(list(promoted_order_ids)),
                completed_at=datetime.now(UTC),
            )
        )
        return True

    def reopen(self, product_name: str) -> bool:
        key = self.product_key(product_name)
        completed = self.completed
        if key not in completed:
            return False

        self._store_completed(completed - {key})
        self.raise_(ProductBakingReopened(product_name=key, reopened_at=datetime.now(UTC)))
        return True

    def reset(self, reset_by: str | None = None) -> list[str]:
        """Clear every flag and return the names that were cleared."""
        cleared = sorted(self.completed)
        now = datetime.now(UTC)
        self._store_completed(())
        self.started_at = now
        self.reset_by = reset_by
        self.raise_(BakingSessionReset(cleared_products=json.dumps(cleared), reset_by=reset_by, reset_at=now))
        return cleared
