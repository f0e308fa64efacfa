"""
statetree - Hierarchical Reactive State Container

A tree of immutably-updated state stores. Each store publishes its state as a
push stream, supports computed fields and memoized selection, and can be
nested under a parent store whose state mirrors it under a feature key.
"""

from . import operators
from .actions import SET_STATE, Action, SetState, action_kind
from .exceptions import (
    CircularDependencyError,
    ConfigurationError,
    StoreClosedError,
    StoreError,
)
from .immutable import EMPTY_STATE, Draft, ListDraft, freeze_value, update
from .observable import (
    AsapScheduler,
    BehaviorSubject,
    Observable,
    Subject,
    Subscription,
    get_default_scheduler,
    set_default_scheduler,
)
from .provider import create_action_channel, provide_store
from .selector import create_feature_selector, create_selector, memoize
from .store import Store

__all__ = [
    # Store
    "Store",
    "provide_store",
    "create_action_channel",
    # Immutable updates
    "update",
    "Draft",
    "ListDraft",
    "freeze_value",
    "EMPTY_STATE",
    # Selectors
    "memoize",
    "create_selector",
    "create_feature_selector",
    # Actions
    "Action",
    "SetState",
    "SET_STATE",
    "action_kind",
    # Streams
    "Observable",
    "Subject",
    "BehaviorSubject",
    "Subscription",
    "AsapScheduler",
    "get_default_scheduler",
    "set_default_scheduler",
    "operators",
    # Exceptions
    "StoreError",
    "ConfigurationError",
    "StoreClosedError",
    "CircularDependencyError",
]
