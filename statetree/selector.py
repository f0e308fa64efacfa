"""
Memoized Selectors
==================

A selector is a pure function from state to a derived value. Memoizing it on
its last arguments means calling it again with the same snapshot (by
reference) returns the very same result object, which keeps identity-based
change suppression in composed pipelines working:

```python
from statetree.selector import create_selector

visible_todos = create_selector(
    lambda state: state["todos"],
    lambda state: state["filter"],
    lambda todos, flt: [t for t in todos if flt == "all" or t["status"] == flt],
)
```

Caches hold a single entry; anything other than the last input is
recomputed.
"""

from functools import wraps
from typing import Any, Callable, Optional, Tuple

from pyrsistent import PMap

from .immutable import EMPTY_STATE

_NOT_SET = object()


def _same_arguments(previous: Tuple, current: Tuple) -> bool:
    return len(previous) == len(current) and all(
        a is b for a, b in zip(previous, current)
    )


def memoize(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Cache ``fn`` on the identity of its last positional arguments.

    The wrapper exposes ``recomputations()`` and ``clear_cache()``.
    """
    cache = {"args": _NOT_SET, "result": None, "recomputations": 0}

    @wraps(fn)
    def memoized(*args):
        if cache["args"] is not _NOT_SET and _same_arguments(cache["args"], args):
            return cache["result"]
        result = fn(*args)
        cache["args"] = args
        cache["result"] = result
        cache["recomputations"] += 1
        return result

    def clear_cache() -> None:
        cache["args"] = _NOT_SET
        cache["result"] = None

    memoized.recomputations = lambda: cache["recomputations"]
    memoized.clear_cache = clear_cache
    return memoized


def create_selector(*selectors: Callable[..., Any]) -> Callable[..., Any]:
    """
    Compose input selectors with a memoized combiner (the last argument).

    The combiner only runs when at least one input selector returns a
    different object than last time.
    """
    if len(selectors) < 2:
        raise TypeError("create_selector needs at least one input selector and a combiner")

    *inputs, combiner = selectors
    memoized_combiner = memoize(combiner)

    @memoize
    def selector(*args):
        return memoized_combiner(*(input_selector(*args) for input_selector in inputs))

    selector.recomputations = memoized_combiner.recomputations
    return selector


def create_feature_selector(name: Optional[str] = None) -> Callable[[Any], PMap]:
    """
    Select the slice stored under ``name``.

    Missing or empty slices resolve to the shared empty snapshot. Without a
    name the whole state is returned.
    """

    @memoize
    def feature_selector(state):
        if not name:
            value = state
        elif state and name in state:
            value = state[name]
        else:
            value = None
        return value or EMPTY_STATE

    return feature_selector
