import pytest
from protean.integrations.pytest import DomainFixture

from bakehouse.config import BakehouseConfig
from bakehouse.engine import OrderFulfillmentEngine


@pytest.fixture(scope="session")
def bakehouse_bed():
    from bakehouse.domain import bakehouse

    bed = DomainFixture(bakehouse)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(bakehouse_bed):
    with bakehouse_bed.domain_context():
        yield


@pytest.fixture
def config():
    return BakehouseConfig(env="test")


@pytest.fixture
def engine(config):
    return OrderFulfillmentEngine(config)


@pytest.fixture
def store(engine):
    return engine.store


@pytest.fixture
def place_paid_order(engine):
    """Place an order and confirm its payment; returns the order id."""

    def _place(items, name="Alice", email=None, **kwargs):
        order_id = engine.place_order(
            customer={"name": name, "email": email or f"{name.lower()}@example.com"},
            items=items,
            **kwargs,
        )
        engine.confirm_payment(order_id, payment_reference=f"pi_{order_id}")
        return order_id

    return _place
