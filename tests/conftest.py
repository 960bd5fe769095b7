import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Expose the selected environment to protean and to ``BakehouseConfig.from_env``,
    then initialize the bakehouse domain so every element is registered.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["BAKEHOUSE_ENV"] = session.config.option.env

    from bakehouse.domain import bakehouse

    bakehouse.init()
    bakehouse.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure and singletons after every test"""
    yield

    from bakehouse.config import reset_config
    from bakehouse.domain import bakehouse
    from bakehouse.order.store import reset_order_store
    from bakehouse.utils.db import reset_data
    from bakehouse.utils.logging import clear_context

    reset_data(bakehouse)
    reset_order_store()
    reset_config()
    clear_context()
