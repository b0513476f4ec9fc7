import threading

import pytest

from doorways import models
from doorways.channel import HandoffChannel
from doorways.errors import ChannelClosed
from doorways.status import StatusStore


def test_unlaunched_index_is_absent():
    store = StatusStore()
    assert store.get(3) is None
    assert 3 not in store
    assert len(store) == 0


def test_begin_refuses_while_in_flight():
    store = StatusStore()
    assert store.begin(0, models.STARTING)
    assert not store.begin(0, models.STARTING)
    store.set(0, models.RUNNING)
    assert not store.begin(0, models.STARTING)
    store.set(0, models.error(2))
    assert store.begin(0, models.STARTING)
    store.set(0, models.failed_to_launch("nope"))
    assert store.begin(0, models.STARTING)


def test_snapshot_is_a_copy():
    store = StatusStore()
    store.set(1, models.SUCCESS)
    snap = store.snapshot()
    snap[2] = models.RUNNING
    assert 2 not in store


def test_begin_is_exclusive_across_threads():
    store = StatusStore()
    wins = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        if store.begin(5, models.STARTING):
            wins.append(1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(wins) == 1


def test_channel_preserves_order_and_never_blocks():
    ch = HandoffChannel()
    assert ch.try_recv() is None
    for i in range(100):
        ch.send(i)
    assert ch.drain() == list(range(100))
    assert ch.drain() == []


def test_closed_channel_reports_disconnect_after_drain():
    ch = HandoffChannel()
    ch.send("a")
    ch.close()
    assert ch.try_recv() == "a"
    with pytest.raises(ChannelClosed):
        ch.try_recv()
    with pytest.raises(ChannelClosed):
        ch.send("b")
    assert not hasattr(ch, "closed")


def test_status_json():
    assert models.error(3).to_json() == {"status": "error", "code": 3}
    assert models.failed_to_launch("x").to_json() == {"status": "failed_to_launch", "reason": "x"}
    assert models.RUNNING.in_flight and not models.SUCCESS.in_flight
