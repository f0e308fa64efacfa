"""
Shared pytest fixtures and configuration for statetree tests.
"""

import pytest

from statetree import AsapScheduler, Store, create_action_channel
from statetree.observable import _reset_default_scheduler


@pytest.fixture(autouse=True)
def reset_default_scheduler():
    """Reset the default scheduler before each test to prevent state leakage."""
    _reset_default_scheduler()
    yield
    _reset_default_scheduler()


@pytest.fixture
def scheduler():
    """Provide a scheduler drained explicitly with flush()."""
    return AsapScheduler()


@pytest.fixture
def actions():
    """Provide a fresh action channel."""
    return create_action_channel()


@pytest.fixture
def dispatched(actions):
    """Record everything dispatched on the action channel."""
    received = []
    actions.subscribe(received.append)
    return received


@pytest.fixture
def make_store(actions, scheduler):
    """Build stores sharing the test's action channel and scheduler."""
    stores = []

    def factory(initial_state, parent=None, feature=None):
        store = Store(
            initial_state,
            actions,
            parent=parent,
            feature=feature,
            scheduler=scheduler,
        )
        stores.append(store)
        return store

    yield factory

    for store in reversed(stores):
        store.close()
