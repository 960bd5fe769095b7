"""Baking completion: operator commands for the baking board."""

from protean import handle
from protean.fields import String

from bakehouse.baking.aggregator import AUTO_BAKING_ACTOR, BakingQueueAggregator
from bakehouse.baking.session import BakingSession
from bakehouse.domain import bakehouse
from bakehouse.order.store import get_order_store


@bakehouse.command(part_of="BakingSession")
class MarkProductBaked:
    product_name = String(required=True, max_length=100)
    updated_by = String(max_length=100, default=AUTO_BAKING_ACTOR)


@bakehouse.command(part_of="BakingSession")
class UnmarkProductBaked:
    product_name = String(required=True, max_length=100)


@bakehouse.command(part_of="BakingSession")
class ResetBakingSession:
    reset_by = String(required=True, max_length=100)


@bakehouse.command_handler(part_of=BakingSession)
class BakingCompletionHandler:
    @handle(MarkProductBaked)
    def mark_product_baked(self, command):
        aggregator = BakingQueueAggregator(get_order_store())
        return aggregator.mark_product_completed(command.product_name, updated_by=command.updated_by)

    @handle(UnmarkProductBaked)
    def unmark_product_baked(self, command):
        return BakingQueueAggregator(get_order_store()).unmark_product_completed(command.product_name)

    @handle(ResetBakingSession)
    def reset_baking_session(self, command):
        return BakingQueueAggregator(get_order_store()).reset_session(reset_by=command.reset_by)
