"""Domain events for the baking session."""

from protean.fields import DateTime, String, Text

from bakehouse.domain import bakehouse


@bakehouse.event(part_of="BakingSession")
class ProductBakingCompleted:
    """An operator marked a product's batch as done for this session."""

    __version__ = 1

    product_name = String(required=True, max_length=100)
    marked_by = String(required=True, max_length=100)
    promoted_order_ids = Text(required=True)  # JSON list of order ids
    completed_at = DateTime(required=True)


@bakehouse.event(part_of="BakingSession")
class ProductBakingReopened:
    __version__ = 1

    product_name = String(required=True, max_length=100)
    reopened_at = DateTime(required=True)


@bakehouse.event(part_of="BakingSession")
class BakingSessionReset:
    """All completion flags were cleared to start a new day's run."""

    __version__ = 1

    cleared_products = Text(required=True)  # JSON list of product names
    reset_by = String(max_length=100)
    reset_at = DateTime(required=True)
