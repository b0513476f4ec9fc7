import pytest

from conftest import FakeProcess
from doorways import models
from doorways.channel import HandoffChannel
from doorways.errors import ChannelClosed, ExitQueryFailure, ProbeFailure
from doorways.models import Launched, Source, StatusKind
from doorways.monitor import PROBE_FAILURE_CODE, LaunchMonitor
from doorways.probe import ProbeResult, probe
from doorways.status import StatusStore


class ScriptedProbe:
    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    def __call__(self, source, entry_id):
        self.calls.append((source, entry_id))
        r = self.results.pop(0)
        if isinstance(r, Exception):
            raise r
        return r


def _monitor(probe=None, **kw):
    ch = HandoffChannel()
    store = StatusStore()
    fatal = []
    m = LaunchMonitor(ch, store, probe=probe or ScriptedProbe([]), on_fatal=fatal.append, **kw)
    return m, ch, store, fatal


def test_handoff_becomes_running_then_success():
    m, ch, store, _ = _monitor()
    ch.send((0, Launched(FakeProcess([None, 0]), Source.EPIC, "Fortnite")))

    assert m.receive()
    assert store.get(0) == models.STARTING
    assert m.poll_active()
    assert store.get(0) == models.RUNNING
    assert 0 in m.active

    assert m.poll_active()
    assert store.get(0) == models.SUCCESS
    assert m.active == {}


def test_unchanged_running_pass_reports_no_change():
    m, ch, store, _ = _monitor()
    ch.send((1, Launched(FakeProcess([None]), Source.UNKNOWN, "x")))
    assert m.step()
    assert not m.step()
    assert store.get(1) == models.RUNNING


def test_nonzero_exit_is_error_and_leaves_active_set():
    proc = FakeProcess([3])
    m, ch, store, _ = _monitor()
    ch.send((2, Launched(proc, Source.TWITCH, "amzn1")))

    m.step()
    assert store.get(2) == models.error(3)
    assert 2 not in m.active

    m.step()
    assert store.get(2) == models.error(3)
    assert proc.polls == 1


def test_probe_keeps_running_until_inactive():
    probe = ScriptedProbe([ProbeResult.ACTIVE, ProbeResult.ACTIVE, ProbeResult.INACTIVE])
    m, ch, store, _ = _monitor(probe)
    ch.send((4, Launched(FakeProcess([0]), Source.STEAM, "440")))
    m.receive()

    seen = []
    for _ in range(3):
        m.poll_active()
        seen.append(store.get(4))

    assert seen == [models.RUNNING, models.RUNNING, models.SUCCESS]
    assert probe.calls == [(Source.STEAM, "440")] * 3
    assert m.active == {}


def test_probe_required_trampoline_never_flickers_success():
    published = []
    probe = ScriptedProbe([ProbeResult.ACTIVE])
    m, ch, store, _ = _monitor(probe)
    orig_set = store.set
    store.set = lambda i, st: (published.append(st), orig_set(i, st))
    ch.send((0, Launched(FakeProcess([0]), Source.STEAM, "10")))

    m.step()

    assert models.SUCCESS not in published
    assert store.get(0) == models.RUNNING


def test_probe_failure_becomes_error():
    probe = ScriptedProbe([ProbeFailure("no registry")])
    m, ch, store, _ = _monitor(probe)
    ch.send((0, Launched(FakeProcess([0]), Source.STEAM, "10")))

    m.step()

    assert store.get(0) == models.error(PROBE_FAILURE_CODE)
    assert m.active == {}


def test_sources_without_probe_never_call_it():
    probe = ScriptedProbe([])
    m, ch, store, _ = _monitor(probe)
    ch.send((0, Launched(FakeProcess([0]), Source.TWITCH, "a")))
    ch.send((1, Launched(FakeProcess([0]), Source.EPIC, "b")))
    m.step()
    assert probe.calls == []
    assert store.get(0) == store.get(1) == models.SUCCESS


class _BrokenProcess:
    def poll(self):
        raise OSError(10, "No child processes")


def test_exit_query_failure_is_fatal():
    m, ch, store, fatal = _monitor(sleep=lambda s: None)
    ch.send((0, Launched(_BrokenProcess(), Source.UNKNOWN, "x")))

    m.run()

    assert len(fatal) == 1 and isinstance(fatal[0], ExitQueryFailure)
    assert fatal[0].index == 0


def test_closed_channel_is_fatal():
    m, ch, store, fatal = _monitor(sleep=lambda s: None)
    ch.close()
    m.run()
    assert len(fatal) == 1 and isinstance(fatal[0], ChannelClosed)


class _Stop(Exception):
    pass


def test_idle_pass_sleeps_poll_interval():
    slept = []

    def sleep(s):
        slept.append(s)
        raise _Stop()

    m, ch, store, fatal = _monitor(sleep=sleep, poll_interval=0.25)
    with pytest.raises(_Stop):
        m.run()
    assert slept == [0.25]
    assert fatal == []


def test_busy_pass_does_not_sleep():
    slept = []

    def sleep(s):
        slept.append(s)
        raise _Stop()

    m, ch, store, _ = _monitor(sleep=sleep)
    proc = FakeProcess([None, None, 0])
    ch.send((0, Launched(proc, Source.UNKNOWN, "x")))
    with pytest.raises(_Stop):
        m.run()
    # handoff pass, then an unchanged running pass sleeps
    assert proc.polls == 2
    assert slept == [1.0]


def test_probe_unknown_source_fails():
    with pytest.raises(ProbeFailure):
        probe(Source.EPIC, "x")
