"""
Subscriptions
=============

A Subscription is the disposer handed back by every ``subscribe`` call.
Disposing it runs its teardown exactly once; later calls are no-ops.

CompositeSubscription groups several disposers so a store can release all of
its internal listeners with a single ``dispose()``.
"""

from typing import Callable, List, Optional


class Subscription:
    """Idempotent disposer wrapping a teardown callable."""

    __slots__ = ("_teardown", "_closed")

    def __init__(self, teardown: Optional[Callable[[], None]] = None):
        self._teardown = teardown
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def dispose(self) -> None:
        if self._closed:
            return
        self._closed = True
        teardown, self._teardown = self._teardown, None
        if teardown is not None:
            teardown()

    # rx-style alias
    unsubscribe = dispose

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()


class CompositeSubscription(Subscription):
    """
    A Subscription owning a list of child subscriptions.

    Children added after disposal are disposed immediately, so nothing can
    leak past the owner's lifetime.
    """

    __slots__ = ("_children",)

    def __init__(self, *children: Subscription):
        super().__init__()
        self._children: List[Subscription] = list(children)

    def add(self, child: Subscription) -> Subscription:
        if self._closed:
            child.dispose()
        else:
            self._children.append(child)
        return child

    def remove(self, child: Subscription) -> None:
        if child in self._children:
            self._children.remove(child)
            child.dispose()

    def __len__(self) -> int:
        return len(self._children)

    def dispose(self) -> None:
        if self._closed:
            return
        self._closed = True
        children, self._children = self._children, []
        for child in children:
            child.dispose()

    unsubscribe = dispose
