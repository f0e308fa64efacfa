"""Unit tests for the store-level stream operators."""

import pytest

from statetree import SET_STATE, Action, SetState, Store, Subject
from statetree import operators as st
from statetree.observable import operators as ops


@pytest.fixture
def store(make_store):
    return make_store({"count": 0, "label": ""})


@pytest.mark.unit
@pytest.mark.operators
def test_select_emits_selected_value_without_duplicates(store, scheduler):
    """select maps store handles to derived values, suppressing repeats"""
    received = []
    store.handles().pipe(st.select(lambda state: state["count"])).subscribe(
        received.append
    )

    store.set_state({"label": "unrelated"})
    scheduler.flush()
    store.set_state({"count": 2})
    scheduler.flush()

    assert received == [0, 2]


@pytest.mark.unit
@pytest.mark.operators
def test_watch_skips_the_current_value(store, scheduler):
    """watch only reports changes"""
    received = []
    store.handles().pipe(st.watch(lambda state: state["count"])).subscribe(
        received.append
    )

    assert received == []

    store.set_state({"count": 1})
    scheduler.flush()

    assert received == [1]


@pytest.mark.unit
@pytest.mark.operators
def test_bound_dispatch_uses_upstream_store(store, dispatched):
    """Without a store argument the upstream element is the dispatch target"""
    store.handles().pipe(
        ops.take(1),
        st.dispatch(lambda s: Action("SEEN", s.state["count"])),
    ).subscribe()

    assert [(action.kind, action.payload) for action in dispatched] == [("SEEN", 0)]


@pytest.mark.unit
@pytest.mark.operators
def test_unbound_dispatch_targets_given_store_and_passes_elements_through(
    store, dispatched
):
    """With a store argument any stream can dispatch"""
    clicks = Subject()
    passed = []
    ping = Action("PING")
    clicks.pipe(st.dispatch(ping, store=store)).subscribe(passed.append)

    clicks.on_next("click")

    assert dispatched == [ping]
    assert passed == ["click"]


@pytest.mark.unit
@pytest.mark.operators
def test_bound_set_state_applies_setter_to_upstream_store(store):
    """Bound set_state writes into the store seen upstream"""
    store.handles().pipe(ops.take(1), st.set_state({"label": "seen"})).subscribe()

    assert store.state["label"] == "seen"


@pytest.mark.unit
@pytest.mark.operators
def test_unbound_set_state_calls_setter_with_element_and_draft(store):
    """Unbound set_state hands the element to the setter alongside the draft"""
    clicks = Subject()
    passed = []
    clicks.pipe(
        st.set_state(lambda click, draft: draft.update({"count": click}), store=store)
    ).subscribe(passed.append)

    clicks.on_next(7)

    assert store.state["count"] == 7
    assert passed == [7]


@pytest.mark.unit
@pytest.mark.operators
def test_unbound_set_state_accepts_a_patch(store):
    """A mapping setter is merged as-is for every element"""
    clicks = Subject()
    clicks.pipe(st.set_state({"label": "clicked"}, store=store)).subscribe()

    clicks.on_next(None)

    assert store.state["label"] == "clicked"


@pytest.mark.unit
@pytest.mark.operators
def test_to_state_projects_handles_or_a_fixed_store(store):
    """to_state reads .state from the element or from the given store"""
    from_handles, from_fixed = [], []
    store.handles().pipe(st.to_state()).subscribe(from_handles.append)
    ticks = Subject()
    ticks.pipe(st.to_state(store=store)).subscribe(from_fixed.append)

    ticks.on_next("tick")

    assert from_handles == [store.state]
    assert from_fixed == [store.state]


@pytest.mark.unit
@pytest.mark.operators
def test_with_latest_state_reads_state_at_emission_time(store):
    """The paired state is the current one, not the last settled one"""
    clicks = Subject()
    received = []
    clicks.pipe(st.with_latest_state(store)).subscribe(received.append)

    store.set_state({"count": 4})
    clicks.on_next("click")

    element, state = received[0]
    assert element == "click"
    assert state is store.state
    assert state["count"] == 4


@pytest.mark.unit
@pytest.mark.operators
def test_bound_with_latest_state_pairs_store_with_its_state(store):
    """Without a store argument each handle is paired with its own state"""
    received = []
    store.handles().pipe(st.with_latest_state()).subscribe(received.append)

    assert received == [(store, store.state)]


@pytest.mark.unit
@pytest.mark.operators
def test_with_store_like_pairs_elements_with_store(store):
    """with_store_like attaches the store handle"""
    clicks = Subject()
    received = []
    clicks.pipe(st.with_store_like(store)).subscribe(received.append)

    clicks.on_next(1)

    assert received == [(1, store)]


@pytest.mark.unit
@pytest.mark.operators
def test_unbound_of_action_uses_the_given_store(store):
    """of_action with a store ignores the upstream and filters the channel"""
    received = []
    Subject().pipe(st.of_action("PING", store=store)).subscribe(received.append)

    store.dispatch(Action("PING"))
    store.dispatch(Action("PONG"))

    assert [action.kind for action in received] == ["PING"]


@pytest.mark.unit
@pytest.mark.operators
def test_bound_of_action_binds_to_first_store_only(store, scheduler):
    """The first store seen upstream decides which channel is followed"""
    other = Store({}, Subject(), scheduler=scheduler)
    stores = Subject()
    received = []
    stores.pipe(st.of_action("PING")).subscribe(received.append)

    stores.on_next(store)
    stores.on_next(other)
    other.dispatch(Action("PING", "other"))
    store.dispatch(Action("PING", "first"))

    assert [action.payload for action in received] == ["first"]
    other.close()


@pytest.mark.unit
@pytest.mark.operators
def test_of_action_reports_each_set_state_in_commit_order(store, scheduler):
    """One SET_STATE per update, carrying the resulting snapshot"""
    received = []
    store.handles().pipe(st.of_action(SetState)).subscribe(received.append)

    snapshots = [store.set_state({"count": n}) for n in (1, 2, 3)]
    scheduler.flush()

    assert [action.kind for action in received] == [SET_STATE] * 3
    assert [action.payload for action in received] == snapshots
    assert all(a.payload is b for a, b in zip(received, snapshots))


@pytest.mark.unit
@pytest.mark.operators
def test_compute_keeps_a_derived_field_in_sync(store, scheduler):
    """compute(selector, fn) writes fn's result whenever the selection changes"""
    derive = st.compute(
        lambda state: state["count"],
        lambda count, draft: draft.update({"label": f"count={count}"}),
    )
    subscription = derive(store).subscribe()

    assert store.state["label"] == "count=0"

    store.set_state({"count": 2})
    scheduler.flush()

    assert store.state["label"] == "count=2"
    assert scheduler.pending == 0

    subscription.dispose()
    store.set_state({"count": 3})
    scheduler.flush()

    assert store.state["label"] == "count=2"


@pytest.mark.unit
@pytest.mark.operators
def test_pipe_composes_store_operators(store, dispatched):
    """st.pipe bundles several operators into one"""
    clicks = Subject()
    record_click = st.pipe(
        st.set_state(lambda click, draft: draft.update({"count": click}), store=store),
        st.dispatch(lambda click: Action("CLICKED", click), store=store),
    )
    clicks.pipe(record_click).subscribe()

    clicks.on_next(9)

    assert store.state["count"] == 9
    assert [action.kind for action in dispatched] == [SET_STATE, "CLICKED"]
