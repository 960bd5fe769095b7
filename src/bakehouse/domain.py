"""Bakehouse bounded context: cookie pre-orders and the daily baking run.

Tracks each pre-order from checkout through the oven to handover, and keeps
the operator's baking board that decides when an order may start baking.
"""

import structlog
from protean.domain import Domain

bakehouse = Domain(name="bakehouse")

logger = structlog.get_logger(__name__)
