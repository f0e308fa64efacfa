"""
Push Streams
============

The minimal stream runtime the store engine is built on.

- ``Observable``: a cold stream defined by a subscribe function. Each call to
  ``subscribe`` runs the function again for the new observer.
- ``Subject``: a hot stream that multicasts whatever is pushed into it.
- ``BehaviorSubject``: a Subject that remembers its latest value and replays
  it synchronously to every new subscriber.

Streams compose with ``pipe``:

```python
from statetree.observable import BehaviorSubject, operators as ops

counter = BehaviorSubject(0)
doubled = counter.pipe(ops.map(lambda n: n * 2), ops.distinct_until_changed())
subscription = doubled.subscribe(print)  # prints 0
counter.on_next(2)                       # prints 4
subscription.dispose()
```

Errors raised by observers are not caught here. They travel back up to
whoever pushed the value.
"""

from functools import reduce
from typing import Any, Callable, Generic, List, Optional, TypeVar, Union

from .subscription import Subscription

T = TypeVar("T")

OnNext = Callable[[Any], None]
OnError = Callable[[Exception], None]
OnCompleted = Callable[[], None]


def _noop(*args: Any) -> None:
    pass


def _raise(error: Exception) -> None:
    raise error


class Observer(Generic[T]):
    """Callback triple with a stop flag; nothing is delivered once stopped."""

    __slots__ = ("_on_next", "_on_error", "_on_completed", "is_stopped")

    def __init__(
        self,
        on_next: Optional[OnNext] = None,
        on_error: Optional[OnError] = None,
        on_completed: Optional[OnCompleted] = None,
    ):
        self._on_next = on_next or _noop
        self._on_error = on_error or _raise
        self._on_completed = on_completed or _noop
        self.is_stopped = False

    def on_next(self, value: T) -> None:
        if not self.is_stopped:
            self._on_next(value)

    def on_error(self, error: Exception) -> None:
        if not self.is_stopped:
            self.is_stopped = True
            self._on_error(error)

    def on_completed(self) -> None:
        if not self.is_stopped:
            self.is_stopped = True
            self._on_completed()


class _AutoDetachObserver(Observer):
    """
    Observer handed to subscribe functions.

    Releases the upstream subscription on termination or disposal, even when
    disposal happens while the subscribe function is still running.
    """

    __slots__ = ("_upstream", "_disposed")

    def __init__(self, observer: Observer):
        super().__init__(observer.on_next, observer.on_error, observer.on_completed)
        self._upstream: Optional[Subscription] = None
        self._disposed = False

    def set_upstream(self, upstream: Optional[Subscription]) -> None:
        if upstream is None:
            return
        if self._disposed:
            upstream.dispose()
        else:
            self._upstream = upstream

    def on_error(self, error: Exception) -> None:
        try:
            super().on_error(error)
        finally:
            self.dispose()

    def on_completed(self) -> None:
        try:
            super().on_completed()
        finally:
            self.dispose()

    def dispose(self) -> None:
        self.is_stopped = True
        if self._disposed:
            return
        self._disposed = True
        if self._upstream is not None:
            upstream, self._upstream = self._upstream, None
            upstream.dispose()


SubscribeFunction = Callable[[Observer], Optional[Subscription]]
Operator = Callable[["Observable"], "Observable"]


class Observable(Generic[T]):
    """
    A cold push stream.

    ``subscribe_fn`` receives an Observer and returns the Subscription that
    tears the producer down.
    """

    def __init__(self, subscribe_fn: Optional[SubscribeFunction] = None):
        self._subscribe_fn = subscribe_fn

    def _subscribe_core(self, observer: Observer) -> Optional[Subscription]:
        if self._subscribe_fn is None:
            return None
        return self._subscribe_fn(observer)

    def subscribe(
        self,
        on_next: Union[Observer, OnNext, None] = None,
        on_error: Optional[OnError] = None,
        on_completed: Optional[OnCompleted] = None,
    ) -> Subscription:
        """
        Subscribe an Observer or a set of callbacks.

        Returns the disposer. Disposing stops delivery immediately.
        """
        if isinstance(on_next, Observer):
            observer = on_next
        else:
            observer = Observer(on_next, on_error, on_completed)

        sink = _AutoDetachObserver(observer)
        sink.set_upstream(self._subscribe_core(sink))
        return Subscription(sink.dispose)

    def pipe(self, *operators: Operator) -> "Observable":
        """Apply operators left to right."""
        return reduce(lambda source, operator: operator(source), operators, self)


class Subject(Observable[T]):
    """
    Hot multicast stream.

    Values pushed after completion are dropped. Late subscribers to a
    completed Subject receive only the terminal notification.
    """

    def __init__(self):
        super().__init__()
        self._observers: List[Observer] = []
        self.is_stopped = False
        self._error: Optional[Exception] = None

    @property
    def has_observers(self) -> bool:
        return bool(self._observers)

    def _subscribe_core(self, observer: Observer) -> Optional[Subscription]:
        if self.is_stopped:
            if self._error is not None:
                observer.on_error(self._error)
            else:
                observer.on_completed()
            return None

        self._observers.append(observer)

        def remove():
            if observer in self._observers:
                self._observers.remove(observer)

        return Subscription(remove)

    def on_next(self, value: T) -> None:
        if self.is_stopped:
            return
        for observer in list(self._observers):
            observer.on_next(value)

    def on_error(self, error: Exception) -> None:
        if self.is_stopped:
            return
        self.is_stopped = True
        self._error = error
        observers, self._observers = self._observers, []
        for observer in observers:
            observer.on_error(error)

    def on_completed(self) -> None:
        if self.is_stopped:
            return
        self.is_stopped = True
        observers, self._observers = self._observers, []
        for observer in observers:
            observer.on_completed()


class BehaviorSubject(Subject[T]):
    """Subject holding a current value, replayed on subscribe."""

    def __init__(self, value: T):
        super().__init__()
        self._value = value

    @property
    def value(self) -> T:
        return self._value

    def _subscribe_core(self, observer: Observer) -> Optional[Subscription]:
        subscription = super()._subscribe_core(observer)
        if subscription is not None:
            observer.on_next(self._value)
        return subscription

    def on_next(self, value: T) -> None:
        if self.is_stopped:
            return
        self._value = value
        super().on_next(value)
