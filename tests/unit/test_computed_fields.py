"""Unit tests for computed fields."""

import pytest
from pyrsistent import PVector

from statetree import SET_STATE, CircularDependencyError, StoreClosedError


@pytest.mark.unit
@pytest.mark.store
def test_computed_field_is_evaluated_at_construction(make_store):
    """The None placeholder is replaced right away"""
    store = make_store({"count": 2, "doubled": lambda state: state["count"] * 2})

    assert store.state["doubled"] == 4
    assert set(store.computed) == {"doubled"}
    assert store.initial_state["doubled"] is None


@pytest.mark.unit
@pytest.mark.store
def test_computed_field_follows_state_changes(make_store, scheduler):
    """After set_state({'count': 3}) the state is {'count': 3, 'doubled': 6}"""
    store = make_store({"count": 0, "doubled": lambda state: state["count"] * 2})

    store.set_state({"count": 3})
    scheduler.flush()

    assert store.get_state() == {"count": 3, "doubled": 6}


@pytest.mark.unit
@pytest.mark.store
def test_observers_never_see_a_stale_computed_value(make_store, scheduler):
    """The derived value is fresh in the first emission observers receive"""
    store = make_store({"count": 0, "doubled": lambda state: state["count"] * 2})
    received = []
    store.subscribe(lambda state: received.append(dict(state)))

    store.set_state({"count": 3})
    scheduler.flush()

    assert received == [{"count": 0, "doubled": 0}, {"count": 3, "doubled": 6}]


@pytest.mark.unit
@pytest.mark.store
def test_unchanged_computed_value_causes_no_extra_emission(make_store, scheduler):
    """Recomputing to the same value is not written back"""
    store = make_store(
        {"count": 0, "flag": "off", "is_positive": lambda state: state["count"] > 0}
    )
    received = []
    store.subscribe(received.append)

    store.set_state({"flag": "on"})
    scheduler.flush()

    assert len(received) == 2
    assert received[-1]["is_positive"] is False
    assert scheduler.pending == 0


@pytest.mark.unit
@pytest.mark.store
def test_computed_fields_can_depend_on_each_other(make_store, scheduler):
    """Chained derivations settle to a consistent state"""
    store = make_store(
        {
            "a": 1,
            "b": lambda state: state["a"] + 1,
            "c": lambda state: (state["b"] or 0) * 10,
        }
    )
    assert store.get_state() == {"a": 1, "b": 2, "c": 20}

    store.set_state({"a": 5})
    scheduler.flush()

    assert store.get_state() == {"a": 5, "b": 6, "c": 60}


@pytest.mark.unit
@pytest.mark.store
def test_derivation_returning_new_containers_terminates(make_store, scheduler):
    """Equal derived containers do not retrigger recomputation forever"""
    store = make_store(
        {"items": [1, 2], "doubled": lambda state: [n * 2 for n in state["items"]]}
    )

    store.set_state({"items": [3]})
    scheduler.flush()

    assert isinstance(store.state["doubled"], PVector)
    assert list(store.state["doubled"]) == [6]
    assert scheduler.pending == 0


@pytest.mark.unit
@pytest.mark.store
def test_derived_values_travel_with_the_update(make_store, dispatched):
    """The SetState of an update already carries the fresh derived value"""
    store = make_store({"count": 0, "doubled": lambda state: state["count"] * 2})
    dispatched.clear()

    store.set_state({"count": 1})

    assert [action.kind for action in dispatched] == [SET_STATE]
    assert dispatched[0].payload["doubled"] == 2
    assert store.state["doubled"] == 2


@pytest.mark.unit
@pytest.mark.store
def test_observers_subscribed_before_any_write_see_fresh_values(make_store, scheduler):
    """Subscription order does not matter for derived-value freshness"""
    received = []
    store = make_store({"names": [], "total": lambda state: len(state["names"])})
    store.subscribe(lambda state: received.append((list(state["names"]), state["total"])))

    store.set_state({"names": ["a"]})
    store.set_state(lambda draft: draft["names"].append("b"))
    scheduler.flush()

    assert received == [([], 0), (["a", "b"], 2)]


@pytest.mark.unit
@pytest.mark.store
def test_fields_that_never_settle_raise(make_store):
    """Mutually dependent derivations that keep changing are rejected"""
    with pytest.raises(CircularDependencyError):
        make_store(
            {
                "a": lambda state: (state["b"] or 0) + 1,
                "b": lambda state: (state["a"] or 0) + 1,
            }
        )


@pytest.mark.unit
@pytest.mark.store
def test_failing_derivation_leaves_state_untouched(make_store, dispatched):
    """An exception from a derivation aborts the whole update"""

    def ratio(state):
        return 10 / state["count"]

    store = make_store({"count": 1, "ratio": ratio})
    before = store.state
    dispatched.clear()

    with pytest.raises(ZeroDivisionError):
        store.set_state({"count": 0})

    assert store.state is before
    assert dispatched == []


@pytest.mark.unit
@pytest.mark.store
def test_closed_store_stops_deriving(make_store):
    """Once closed, derivations are no longer evaluated"""
    calls = []

    def doubled(state):
        calls.append(state["count"])
        return state["count"] * 2

    store = make_store({"count": 0, "doubled": doubled})
    calls.clear()

    store.close()
    with pytest.raises(StoreClosedError):
        store.set_state({"count": 1})

    assert calls == []
    assert not store._state.has_observers
