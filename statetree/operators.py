"""
Store Operators
===============

Composable stream transformers over stores, for use with ``pipe``.

Operators that act on a store come in two forms, chosen by the ``store``
keyword:

- **bound** (``store`` omitted): the upstream element *is* the store, e.g. a
  stream produced by ``Store.handles()``;
- **unbound** (``store=...``): the upstream element is any value and the
  given store is the target.

```python
from statetree import operators as st

# bound: react to a store's own changes
store.handles().pipe(
    st.watch(lambda state: state["query"]),
).subscribe(print)

# unbound: drive a store from an arbitrary stream
clicks.pipe(
    st.set_state(lambda click, draft: draft.update({"last_click": click}), store=store),
    st.dispatch(lambda click: Clicked(click), store=store),
).subscribe()
```
"""

from typing import Any, Callable, Optional

from .actions import ActionKind
from .observable import Observable
from .observable import operators as ops
from .observable.core import Operator


def pipe(*operators: Operator) -> Operator:
    """Compose operators left to right into a single operator."""

    def _pipe(source: Observable) -> Observable:
        return source.pipe(*operators)

    return _pipe


def select(selector: Callable[[Any], Any]) -> Operator:
    """
    Map a stream of stores to ``selector(store.state)``.

    Consecutive results that are the same object are suppressed, so
    ``selector`` should be memoized when it builds new objects.
    """
    return pipe(
        ops.map(lambda store: selector(store.state)),
        ops.distinct_until_changed(),
    )


def watch(selector: Callable[[Any], Any]) -> Operator:
    """Like ``select``, without the initial value: only changes come through."""
    return pipe(select(selector), ops.skip(1))


def dispatch(action: Any, store=None) -> Operator:
    """
    Dispatch ``action`` for every upstream element.

    A callable ``action`` is a factory called with the element. Elements pass
    through unchanged.
    """

    def effect(element):
        target = store if store is not None else element
        value = action(element) if callable(action) else action
        target.dispatch(value)

    return ops.tap(effect)


def set_state(setter: Any, store=None) -> Operator:
    """
    Apply ``setter`` for every upstream element.

    Bound form: ``setter`` (mapping or recipe) is applied to the upstream
    store. Unbound form: a callable ``setter`` is called as
    ``setter(element, draft)`` against ``store``.
    """

    def effect(element):
        if store is None:
            element.set_state(setter)
        elif callable(setter):
            store.set_state(lambda draft: setter(element, draft))
        else:
            store.set_state(setter)

    return ops.tap(effect)


def to_state(store=None) -> Operator:
    """Project each element (or the fixed ``store``) to its state."""
    if store is not None:
        return ops.map(lambda _: store.state)
    return ops.map(lambda element: element.state)


def with_latest_state(store=None) -> Operator:
    """Pair each element with the state of ``store`` read at emission time."""
    if store is not None:
        return ops.map(lambda element: (element, store.state))
    return ops.map(lambda element: (element, element.state))


def with_store_like(store) -> Operator:
    """Pair each element with ``store``."""
    return ops.map(lambda element: (element, store))


def of_action(kind: ActionKind, store=None) -> Operator:
    """
    Switch to the actions of ``kind`` on the shared channel.

    Unbound form ignores the upstream and uses ``store``'s channel. Bound
    form binds once, to the first store seen upstream.
    """

    def _of_action(source: Observable) -> Observable:
        if store is not None:
            return store.of_action(kind)
        return source.pipe(
            ops.take(1),
            ops.switch_map(lambda first: first.of_action(kind)),
        )

    return _of_action


def compute(
    selector: Callable[[Any], Any],
    fn: Callable[[Any, Any], Optional[Any]],
) -> Callable[[Any], Observable]:
    """
    Build a reactive derivation for a store.

    ``compute(selector, fn)(store)`` returns a stream that, once subscribed,
    calls ``fn(selected, draft)`` on ``store`` whenever ``selector(state)``
    changes (including the current value).
    """

    def _compute(store) -> Observable:
        return store.handles().pipe(
            select(selector),
            set_state(fn, store=store),
        )

    return _compute
