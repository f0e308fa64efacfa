"""
statetree Store - Hierarchical Reactive State Container
=======================================================

A Store holds one immutable state snapshot, publishes every settled change
as a push stream, and can be nested under a parent store under a *feature
key*. All stores of a tree share one action channel.

Basic Usage
-----------

```python
from statetree import Store, create_action_channel

actions = create_action_channel()
counter = Store(lambda: {"count": 0, "doubled": lambda s: s["count"] * 2}, actions)

counter.subscribe(lambda state: print(state["count"], state["doubled"]))  # 0 0
counter.set_state({"count": 3})
counter.scheduler.flush()                                              # 3 6
```

Propagation
-----------

**Root stores** publish their own state changes, coalesced on the scheduler:
the current snapshot is replayed synchronously on subscribe, and every write
made in the same synchronous step is delivered as a single emission at the
next flush (last write wins).

**Child stores** commit upward and read downward, on two separate paths:

- every new local snapshot is merged into the parent with
  ``parent.set_state({feature: snapshot})`` before the child publishes it,
  so a write that fails upstream leaves the child untouched;
- the public stream is the parent's stream narrowed to the ``feature`` slice.

A child's observable state therefore always round-trips through its parent.

Computed Fields
---------------

Initial-state entries that are callables become computed fields. They start
out as ``None`` in ``initial_state``, are evaluated right away at
construction, and are re-evaluated inside every ``set_state`` before the new
snapshot is published. Observers therefore never see a stale derived value,
whatever order they subscribed in. A derived value equal to the stored one
keeps the stored reference.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from pyrsistent import PMap

from .actions import ActionKind, SetState, action_kind, kind_of
from .exceptions import CircularDependencyError, ConfigurationError, StoreClosedError
from .immutable import Setter, freeze_value, to_snapshot, update
from .observable import (
    AsapScheduler,
    BehaviorSubject,
    Observable,
    Subject,
    get_default_scheduler,
)
from .observable import operators as ops
from .selector import create_feature_selector

InitialState = Union[Mapping[str, Any], Callable[[], Mapping[str, Any]]]
Computed = Dict[str, Callable[[PMap], Any]]


def split_initial_state(config: Mapping[str, Any]) -> Tuple[PMap, Computed]:
    """
    Separate literal fields from computed-field descriptors.

    Computed fields are seeded with None in the returned snapshot.
    """
    if not isinstance(config, Mapping):
        raise ConfigurationError(
            f"Initial state must be a mapping, got {type(config).__name__}"
        )

    fields: Dict[str, Any] = {}
    computed: Computed = {}
    for key, value in config.items():
        if callable(value):
            computed[key] = value
            fields[key] = None
        else:
            fields[key] = value
    return to_snapshot(fields), computed


class Store(Observable[PMap]):
    """
    Reactive state container, optionally nested under a parent store.

    The store is itself an Observable of settled snapshots.

    Args:
        initial_state: Mapping, or zero-argument callable returning one.
            Callable values become computed fields.
        actions: Action channel shared by every store of the tree.
        parent: Parent store, or None for a root store.
        feature: Key of this store's slice inside the parent state.
            Required when ``parent`` is given.
        scheduler: Scheduler used for coalescing. Defaults to the
            process-wide scheduler (a child always follows its parent's).
    """

    def __init__(
        self,
        initial_state: InitialState,
        actions: Subject,
        parent: Optional["Store"] = None,
        feature: Optional[str] = None,
        scheduler: Optional[AsapScheduler] = None,
    ):
        super().__init__()

        if parent is not None and not feature:
            raise ConfigurationError("A store with a parent needs a feature key")
        if actions is None:
            raise ConfigurationError("A store needs an action channel")

        config = initial_state() if callable(initial_state) else initial_state
        state, computed = split_initial_state(config)

        self.initial_state: PMap = state
        self.feature = feature
        self.parent = parent
        self.scheduler = (
            parent.scheduler if parent is not None else scheduler or get_default_scheduler()
        )

        self._computed = computed
        self._actions = actions
        state = self._derive(state)
        if parent is not None:
            self._commit_to_parent(state)
        self._state = BehaviorSubject(state)
        self._destroyed = Subject()

        if parent is not None:
            source = parent.pipe(
                ops.map(create_feature_selector(feature)),
                ops.distinct_until_changed(),
            )
        else:
            source = self._state.pipe(
                ops.coalesce(self.scheduler),
                ops.distinct_until_changed(),
            )
        self._source = source.pipe(ops.take_until(self._destroyed))

        logging.debug(
            f"Store created: feature={feature!r}, fields={list(state.keys())}, "
            f"computed={list(computed)}"
        )

    # ============================================================
    # State access
    # ============================================================

    @property
    def state(self) -> PMap:
        return self._state.value

    def get_state(self) -> PMap:
        """Return the current snapshot."""
        return self._state.value

    @property
    def computed(self) -> Computed:
        return dict(self._computed)

    @property
    def closed(self) -> bool:
        return self._state.is_stopped

    def set_state(self, setter: Setter) -> PMap:
        """
        Apply ``setter`` and publish the resulting snapshot.

        ``setter`` is a partial mapping merged onto the state or a recipe
        operating on a draft. Computed fields are brought up to date before
        anything is published, and a child commits to its parent before its
        own subscribers are notified. ``SetState`` is dispatched for every
        call; an unchanged snapshot is not published again. Returns the
        current snapshot.

        Raises:
            ConfigurationError: malformed setter; nothing is published.
            CircularDependencyError: computed fields never settle.
            StoreClosedError: this store, or one of its ancestors, has been
                closed.
        """
        self._check_open()

        current = self._state.value
        state = self._derive(update(current, setter))
        if state is not current:
            if self.parent is not None:
                self._commit_to_parent(state)
            self._state.on_next(state)

        self.dispatch(SetState(state))
        return state

    # ============================================================
    # Streams
    # ============================================================

    def _subscribe_core(self, observer):
        return self._source.subscribe(observer)

    def select(self, selector: Callable[[PMap], Any]) -> Observable:
        """Stream of ``selector(state)``, without consecutive duplicates."""
        return self.pipe(ops.map(selector), ops.distinct_until_changed())

    def handles(self) -> Observable:
        """Stream emitting this store on every settled change."""
        return self.pipe(ops.map(lambda _: self))

    # ============================================================
    # Actions
    # ============================================================

    @property
    def actions(self) -> Subject:
        return self._actions

    def dispatch(self, action: Any) -> None:
        """Push ``action`` onto the shared action channel."""
        self._actions.on_next(action)

    def of_action(self, kind: ActionKind) -> Observable:
        """Actions on the shared channel whose kind matches ``kind``."""
        expected = action_kind(kind)
        return self._actions.pipe(ops.filter(lambda action: kind_of(action) == expected))

    # ============================================================
    # Internals
    # ============================================================

    def _check_open(self) -> None:
        store = self
        while store is not None:
            if store.closed:
                raise StoreClosedError(f"Cannot set state through closed store {store!r}")
            store = store.parent

    def _commit_to_parent(self, state: PMap) -> None:
        logging.debug(f"Store {self.feature!r}: committing to parent")
        self.parent.set_state({self.feature: state})

    def _derive(self, state: PMap) -> PMap:
        """
        Bring every computed field up to date with ``state``.

        Fields are evaluated in declaration order, each against the snapshot
        including the fields derived before it, and the passes repeat until
        nothing changes. A derived value identical or equal to the stored one
        is not written, so an unchanged snapshot is returned as-is.
        """
        for _ in range(len(self._computed) + 1):
            settled = True
            for name, derive in self._computed.items():
                value = freeze_value(derive(state))
                previous = state.get(name)
                if value is previous or value == previous:
                    continue
                logging.debug(f"Store {self.feature!r}: computed field {name!r} changed")
                state = state.set(name, value)
                settled = False
            if settled:
                return state

        raise CircularDependencyError(
            f"Computed fields {list(self._computed)} of store {self.feature!r} "
            f"did not settle"
        )

    # ============================================================
    # Lifecycle
    # ============================================================

    def close(self) -> None:
        """
        Stop the store.

        Completes every public-stream subscriber, which releases their
        listeners on the parent. Later writes raise StoreClosedError.
        Idempotent.
        """
        if self.closed:
            return
        logging.debug(f"Store {self.feature!r}: closing")
        self._state.on_completed()
        self._destroyed.on_next(None)
        self._destroyed.on_completed()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Store(feature={self.feature!r}, state={dict(self.state)!r})"
