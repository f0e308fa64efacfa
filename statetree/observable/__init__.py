"""
statetree.observable - push-stream runtime used by the store engine.
"""

from . import operators
from .core import BehaviorSubject, Observable, Observer, Subject
from .scheduler import (
    AsapScheduler,
    _reset_default_scheduler,
    get_default_scheduler,
    set_default_scheduler,
)
from .subscription import CompositeSubscription, Subscription

__all__ = [
    "Observable",
    "Observer",
    "Subject",
    "BehaviorSubject",
    "Subscription",
    "CompositeSubscription",
    "AsapScheduler",
    "get_default_scheduler",
    "set_default_scheduler",
    "_reset_default_scheduler",
    "operators",
]
