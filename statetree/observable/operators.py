"""
Stream Operators
================

Low-level operators over ``Observable``. Each function returns an operator,
a callable taking a source Observable and returning a new one, for use with
``Observable.pipe``.

Store-level operators (select, dispatch, set_state, ...) live in
``statetree.operators`` and are built from these.
"""

import operator as _operator
from typing import Any, Callable, Optional

from .core import Observable, Observer, Operator
from .scheduler import AsapScheduler
from .subscription import CompositeSubscription, Subscription

_NOT_SET = object()


def map(mapper: Callable[[Any], Any]) -> Operator:
    """Project every value through ``mapper``."""

    def _map(source: Observable) -> Observable:
        def subscribe(observer: Observer) -> Subscription:
            return source.subscribe(
                lambda value: observer.on_next(mapper(value)),
                observer.on_error,
                observer.on_completed,
            )

        return Observable(subscribe)

    return _map


def filter(predicate: Callable[[Any], bool]) -> Operator:
    """Forward only values for which ``predicate`` holds."""

    def _filter(source: Observable) -> Observable:
        def subscribe(observer: Observer) -> Subscription:
            def on_next(value):
                if predicate(value):
                    observer.on_next(value)

            return source.subscribe(on_next, observer.on_error, observer.on_completed)

        return Observable(subscribe)

    return _filter


def tap(action: Callable[[Any], None]) -> Operator:
    """Run ``action`` for its side effect, forwarding values unchanged."""

    def _tap(source: Observable) -> Observable:
        def subscribe(observer: Observer) -> Subscription:
            def on_next(value):
                action(value)
                observer.on_next(value)

            return source.subscribe(on_next, observer.on_error, observer.on_completed)

        return Observable(subscribe)

    return _tap


def skip(count: int) -> Operator:
    """Drop the first ``count`` values."""

    def _skip(source: Observable) -> Observable:
        def subscribe(observer: Observer) -> Subscription:
            remaining = [count]

            def on_next(value):
                if remaining[0] > 0:
                    remaining[0] -= 1
                    return
                observer.on_next(value)

            return source.subscribe(on_next, observer.on_error, observer.on_completed)

        return Observable(subscribe)

    return _skip


def take(count: int) -> Operator:
    """Forward the first ``count`` values, then complete."""

    def _take(source: Observable) -> Observable:
        def subscribe(observer: Observer) -> Optional[Subscription]:
            if count <= 0:
                observer.on_completed()
                return None

            remaining = [count]

            def on_next(value):
                if remaining[0] <= 0:
                    return
                remaining[0] -= 1
                observer.on_next(value)
                if remaining[0] == 0:
                    observer.on_completed()

            return source.subscribe(on_next, observer.on_error, observer.on_completed)

        return Observable(subscribe)

    return _take


def take_until(notifier: Observable) -> Operator:
    """Forward values until ``notifier`` emits or completes."""

    def _take_until(source: Observable) -> Observable:
        def subscribe(observer: Observer) -> Subscription:
            subscriptions = CompositeSubscription()

            def stop(*_):
                observer.on_completed()

            subscriptions.add(notifier.subscribe(stop, observer.on_error, stop))
            if not observer.is_stopped:
                subscriptions.add(
                    source.subscribe(
                        observer.on_next, observer.on_error, observer.on_completed
                    )
                )
            return subscriptions

        return Observable(subscribe)

    return _take_until


def distinct_until_changed(
    key_mapper: Optional[Callable[[Any], Any]] = None,
    comparer: Callable[[Any, Any], bool] = _operator.is_,
) -> Operator:
    """
    Suppress consecutive duplicates.

    Duplicates are detected by reference identity unless a ``comparer`` is
    given.
    """

    def _distinct_until_changed(source: Observable) -> Observable:
        def subscribe(observer: Observer) -> Subscription:
            last = [_NOT_SET]

            def on_next(value):
                key = key_mapper(value) if key_mapper else value
                if last[0] is not _NOT_SET and comparer(last[0], key):
                    return
                last[0] = key
                observer.on_next(value)

            return source.subscribe(on_next, observer.on_error, observer.on_completed)

        return Observable(subscribe)

    return _distinct_until_changed


def switch_map(project: Callable[[Any], Observable]) -> Operator:
    """
    Map each value to an inner stream, following only the latest one.

    Completes when the source and the current inner stream have completed.
    """

    def _switch_map(source: Observable) -> Observable:
        def subscribe(observer: Observer) -> Subscription:
            subscriptions = CompositeSubscription()
            inner = [None]
            state = {"source_done": False, "inner_active": False}

            def inner_completed():
                state["inner_active"] = False
                if state["source_done"]:
                    observer.on_completed()

            def on_next(value):
                if inner[0] is not None:
                    subscriptions.remove(inner[0])
                state["inner_active"] = True
                inner[0] = subscriptions.add(
                    project(value).subscribe(
                        observer.on_next, observer.on_error, inner_completed
                    )
                )

            def on_completed():
                state["source_done"] = True
                if not state["inner_active"]:
                    observer.on_completed()

            subscriptions.add(source.subscribe(on_next, observer.on_error, on_completed))
            return subscriptions

        return Observable(subscribe)

    return _switch_map


def coalesce(scheduler: AsapScheduler) -> Operator:
    """
    Collapse same-tick values into one deferred emission.

    The first value delivered while subscribing (the replay of a
    BehaviorSubject) is forwarded synchronously. Every later value is held
    and the latest one is emitted at the scheduler's next flush; one flush
    delivers at most one value. Completion drops any held value.
    """

    def _coalesce(source: Observable) -> Observable:
        def subscribe(observer: Observer) -> Subscription:
            state = {"subscribing": True, "replayed": False}
            pending = [_NOT_SET]
            scheduled = [None]

            def flush():
                scheduled[0] = None
                value, pending[0] = pending[0], _NOT_SET
                if value is not _NOT_SET:
                    observer.on_next(value)

            def cancel():
                if scheduled[0] is not None:
                    scheduled[0].dispose()
                    scheduled[0] = None
                pending[0] = _NOT_SET

            def on_next(value):
                if state["subscribing"] and not state["replayed"]:
                    state["replayed"] = True
                    observer.on_next(value)
                    return
                pending[0] = value
                if scheduled[0] is None:
                    scheduled[0] = scheduler.schedule(flush)

            def on_error(error):
                cancel()
                observer.on_error(error)

            def on_completed():
                cancel()
                observer.on_completed()

            upstream = source.subscribe(on_next, on_error, on_completed)
            state["subscribing"] = False

            def teardown():
                cancel()
                upstream.dispose()

            return Subscription(teardown)

        return Observable(subscribe)

    return _coalesce
