import dataclasses

import pytest

from receiptmatic.jobs import (
    InvalidTransition,
    Job,
    JobState,
    JobStore,
    JobStoreError,
    next_state,
)


def _store_with(*ids, lines=("a", "b")):
    store = JobStore()
    for jid in ids:
        store.insert(Job(id=jid, lines=tuple(lines)))
    return store


def _reveal_all(store, jid):
    while store.get(jid).revealed < store.get(jid).total:
        store.append_line(jid)


def test_snapshot_in_creation_order():
    store = _store_with("r-2", "r-1", "r-3")
    assert [s.id for s in store.snapshot()] == ["r-2", "r-1", "r-3"]
    assert len(store) == 3


def test_snapshot_is_read_only_copy():
    store = _store_with("r-1")
    snap = store.snapshot()[0]
    with pytest.raises(dataclasses.FrozenInstanceError):
        snap.revealed = 2
    store.append_line("r-1")
    assert snap.revealed == 0
    assert store.get("r-1").revealed == 1


def test_lines_are_revealed_prefix():
    store = _store_with("r-1", lines=("x", "y", "z"))
    store.append_line("r-1")
    store.append_line("r-1")
    snap = store.get("r-1")
    assert snap.lines == ("x", "y")
    assert snap.template == ("x", "y", "z")
    assert snap.total == 3


def test_cannot_reveal_past_total():
    store = _store_with("r-1")
    _reveal_all(store, "r-1")
    with pytest.raises(JobStoreError):
        store.append_line("r-1")


def test_cannot_reveal_outside_revealing():
    store = _store_with("r-1", lines=("x",))
    store.append_line("r-1")
    store.set_state("r-1", JobState.SETTLING)
    with pytest.raises(JobStoreError):
        store.append_line("r-1")


def test_leaving_revealing_requires_full_reveal():
    store = _store_with("r-1")
    store.append_line("r-1")
    with pytest.raises(InvalidTransition):
        store.set_state("r-1", JobState.SETTLING)


def test_states_cannot_skip_or_reverse():
    store = _store_with("r-1")
    _reveal_all(store, "r-1")
    with pytest.raises(InvalidTransition):
        store.set_state("r-1", JobState.SETTLED)
    store.set_state("r-1", JobState.SETTLING)
    with pytest.raises(InvalidTransition):
        store.set_state("r-1", JobState.REVEALING)
    store.set_state("r-1", JobState.SETTLED)
    assert store.get("r-1").state is JobState.SETTLED


def test_next_state_terminal():
    assert next_state(JobState.ASSEMBLING) is JobState.REVEALING
    with pytest.raises(InvalidTransition):
        next_state(JobState.SETTLED)


def test_unknown_job_mutations_are_noops():
    store = JobStore()
    assert store.append_line("missing") is False
    assert store.set_state("missing", JobState.SETTLING) is False
    assert store.get("missing") is None
    assert store.version == 0


def test_insert_rejects_duplicates_and_revealed_jobs():
    store = _store_with("r-1")
    with pytest.raises(JobStoreError):
        store.insert(Job(id="r-1", lines=("a",)))
    with pytest.raises(JobStoreError):
        store.insert(Job(id="r-2", lines=("a",), revealed=1))


def test_listeners_see_every_mutation():
    store = JobStore()
    seen = []
    store.add_listener(lambda event, snap: seen.append((event, snap.state, snap.revealed)))
    store.insert(Job(id="r-1", lines=("a",)))
    store.append_line("r-1")
    store.set_state("r-1", JobState.SETTLING)
    assert seen == [
        ("inserted", JobState.REVEALING, 0),
        ("line", JobState.REVEALING, 1),
        ("state", JobState.SETTLING, 1),
    ]
    assert store.version == 3


def test_failing_listener_does_not_break_writer():
    store = JobStore()

    def boom(event, snap):
        raise ValueError("listener bug")

    store.add_listener(boom)
    store.insert(Job(id="r-1", lines=("a",)))
    assert store.append_line("r-1") is True
    assert store.get("r-1").revealed == 1
