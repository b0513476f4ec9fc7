from __future__ import annotations

import logging
import os
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from . import models
from .channel import HandoffChannel
from .errors import ChannelClosed, DoorwaysError, ExitQueryFailure, ProbeFailure
from .models import Launched, LaunchStatus
from .probe import ProbeResult, probe as default_probe
from .status import StatusStore

log = logging.getLogger(__name__)

PROBE_FAILURE_CODE = 1
FATAL_EXIT_CODE = 70

Handoff = Tuple[int, Launched]


def _die(err: DoorwaysError) -> None:
    log.critical("Launch monitor stopped: %s", err)
    os._exit(FATAL_EXIT_CODE)


class LaunchMonitor:
    """Owns every in-flight process handle and polls them to completion.

    Only the monitor thread touches `active`. Status is published through the
    shared StatusStore, never held across a poll or a probe.
    """

    def __init__(
        self,
        channel: HandoffChannel[Handoff],
        status: StatusStore,
        *,
        probe: Callable[[models.Source, str], ProbeResult] = default_probe,
        poll_interval: float = 1.0,
        on_fatal: Callable[[DoorwaysError], None] = _die,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.channel = channel
        self.status = status
        self.active: Dict[int, Launched] = {}
        self._probe = probe
        self._poll_interval = poll_interval
        self._on_fatal = on_fatal
        self._sleep = sleep
        self._published: Dict[int, LaunchStatus] = {}

    # ── status publishing ────────────────────────────────────────────────────

    def _publish(self, index: int, status: LaunchStatus) -> bool:
        changed = self._published.get(index) != status
        self.status.set(index, status)
        self._published[index] = status
        return changed

    # ── one pass ─────────────────────────────────────────────────────────────

    def receive(self) -> bool:
        """Take ownership of all pending handoffs. Returns True if any arrived."""
        handoffs = self.channel.drain()
        for index, launched in handoffs:
            self.active[index] = launched
            self._publish(index, models.STARTING)
        return bool(handoffs)

    def _exit_code(self, index: int, launched: Launched) -> Optional[int]:
        try:
            return launched.process.poll()
        except OSError as e:
            raise ExitQueryFailure(index, e) from e

    def _after_exit(self, launched: Launched, code: int) -> LaunchStatus:
        if code != 0:
            return models.error(code)
        if not launched.launcher.requires_probe:
            return models.SUCCESS
        try:
            result = self._probe(launched.launcher, launched.id)
        except ProbeFailure as e:
            log.error("Error getting %s status: %s", launched.launcher.value, e)
            return models.error(PROBE_FAILURE_CODE)
        if result is ProbeResult.ACTIVE:
            return models.RUNNING
        return models.SUCCESS

    def poll_active(self) -> bool:
        """Non-blocking exit check of every active handle. Returns True on any change."""
        changed = False
        finished = []
        for index, launched in self.active.items():
            code = self._exit_code(index, launched)
            if code is None:
                status = models.RUNNING
            else:
                status = self._after_exit(launched, code)
                if not status.in_flight:
                    finished.append(index)
            changed |= self._publish(index, status)
        for index in finished:
            launched = self.active.pop(index)
            log.info("Entry %s (%s) finished: %s", index, launched.id, self._published[index].kind.value)
        return changed or bool(finished)

    def step(self) -> bool:
        received = self.receive()
        changed = self.poll_active()
        return received or changed

    # ── loop ─────────────────────────────────────────────────────────────────

    def run(self) -> None:
        try:
            while True:
                if not self.step():
                    self._sleep(self._poll_interval)
        except (ExitQueryFailure, ChannelClosed) as e:
            self._on_fatal(e)

    def start(self) -> threading.Thread:
        t = threading.Thread(target=self.run, name="launch-monitor", daemon=True)
        t.start()
        return t
