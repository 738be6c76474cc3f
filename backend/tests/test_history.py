import threading

import pytest

from superside.history import DEFAULT_HISTORY_SIZE, HistoryBuffer


def _names(buffer: HistoryBuffer) -> list[str]:
    return [n.event.service.name for n in buffer.snapshot()]


def test_default_capacity():
    assert HistoryBuffer().capacity == DEFAULT_HISTORY_SIZE == 20


def test_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        HistoryBuffer(0)


def test_empty_snapshot():
    buffer = HistoryBuffer(3)
    assert buffer.snapshot() == []
    assert len(buffer) == 0


def test_partial_fill_keeps_insertion_order(event_factory):
    buffer = HistoryBuffer(5)
    for name in ("a", "b", "c"):
        buffer.insert(event_factory(name))

    assert _names(buffer) == ["a", "b", "c"]
    assert len(buffer) == 3


def test_exact_fill_keeps_everything(event_factory):
    buffer = HistoryBuffer(3)
    for name in ("a", "b", "c"):
        buffer.insert(event_factory(name))

    assert _names(buffer) == ["a", "b", "c"]


def test_capacity_two_evicts_oldest(event_factory):
    buffer = HistoryBuffer(2)
    for name in ("E1", "E2", "E3"):
        buffer.insert(event_factory(name))

    assert _names(buffer) == ["E2", "E3"]
    assert len(buffer) == 2


def test_overflow_keeps_most_recent_window(event_factory):
    buffer = HistoryBuffer(4)
    names = [f"svc-{i}" for i in range(11)]
    for name in names:
        buffer.insert(event_factory(name))

    assert _names(buffer) == names[-4:]


def test_snapshot_is_idempotent(event_factory):
    buffer = HistoryBuffer(3)
    for name in ("a", "b", "c", "d"):
        buffer.insert(event_factory(name))

    assert buffer.snapshot() == buffer.snapshot()


def test_snapshot_is_independent_of_later_inserts(event_factory):
    buffer = HistoryBuffer(2)
    buffer.insert(event_factory("a"))
    before = buffer.snapshot()

    buffer.insert(event_factory("b"))
    buffer.insert(event_factory("c"))

    assert [n.event.service.name for n in before] == ["a"]
    assert _names(buffer) == ["b", "c"]


def test_snapshot_projects_cluster_name(event_factory):
    buffer = HistoryBuffer(2)
    event = event_factory("api", cluster="prod")
    buffer.insert(event)

    (notification,) = buffer.snapshot()
    assert notification.cluster_name == "prod"
    assert notification.event == event.change_event
    assert buffer.entries() == [event]


def test_concurrent_snapshots_are_never_torn(event_factory):
    capacity = 8
    buffer = HistoryBuffer(capacity)
    events = [event_factory(f"svc-{i}") for i in range(2000)]
    failures = []

    def writer():
        for event in events:
            buffer.insert(event)

    def reader():
        for _ in range(500):
            seen = [int(e.change_event.service.name.split("-")[1]) for e in buffer.entries()]
            if len(seen) > capacity:
                failures.append(("overfull", seen))
            if seen and seen != list(range(seen[0], seen[0] + len(seen))):
                failures.append(("gap", seen))

    threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert failures == []
    assert [int(n.split("-")[1]) for n in _names(buffer)] == list(range(1992, 2000))
