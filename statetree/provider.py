"""
Store wiring helpers.

A tree of stores needs three things from whoever builds it: an action
channel shared by all stores, a parent reference (or None for the root), and
each store's feature key and initial state. ``provide_store`` binds the last
two once so the builder only supplies the channel and the parent.
"""

from typing import Callable, Optional, Type

from .observable import AsapScheduler, Subject
from .store import InitialState, Store


def create_action_channel() -> Subject:
    """Create the action channel shared by one store tree."""
    return Subject()


def provide_store(
    feature: str,
    initial_state: InitialState,
    store_class: Type[Store] = Store,
) -> Callable[..., Store]:
    """
    Return a factory building ``store_class`` for ``feature``.

    The factory takes ``(actions, parent=None, scheduler=None)``. Root stores
    ignore ``feature``.
    """

    def factory(
        actions: Subject,
        parent: Optional[Store] = None,
        scheduler: Optional[AsapScheduler] = None,
    ) -> Store:
        return store_class(
            initial_state,
            actions,
            parent=parent,
            feature=feature if parent is not None else None,
            scheduler=scheduler,
        )

    factory.feature = feature
    return factory
