"""Repository helpers for the bakehouse domain's providers."""

import threading
from contextlib import contextmanager

from protean.core.unit_of_work import UnitOfWork
from protean.domain import Domain

_write_lock = threading.RLock()


@contextmanager
def transaction(domain: Domain):
    """Run a block in its own unit of work, committed before the block returns.

    Blocks run one at a time across threads; units of work on the memory
    provider must not interleave.
    """
    with _write_lock, domain.domain_context(), UnitOfWork():
        yield


def reset_data(domain: Domain):
    """Clear every provider and drain the event store."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            provider._data_reset()

        domain.event_store.store._data_reset()
