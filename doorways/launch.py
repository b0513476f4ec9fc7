# doorways/launch.py
from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Tuple

from . import models
from .channel import HandoffChannel
from .errors import MissingLaunchTarget, SpawnFailure
from .models import CatalogEntry, Launched, LaunchStatus
from .monitor import Handoff, LaunchMonitor
from .status import StatusStore
from .utils import is_macos, is_windows

if TYPE_CHECKING:
    from .catalog import Catalog

log = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
# Small helpers
# ──────────────────────────────────────────────────────────────────────────────

def url_handoff_argv(url: str) -> List[str]:
    """Platform URL handler; exits near-immediately once the URL is handed over."""
    if is_windows():
        # empty "" is the window title slot of `start`
        return ["cmd", "/C", "start", "", url]
    if is_macos():
        return ["open", url]
    return ["xdg-open", url]

def launch_command(entry: CatalogEntry) -> Tuple[List[str], Optional[str]]:
    """Resolve (argv, cwd) for an entry, preferring install directory + command."""
    if entry.install_directory and entry.command:
        install_dir = Path(entry.install_directory)
        argv = [str(install_dir / entry.command)] + list(entry.args or [])
        if entry.working_subdir_override:
            cwd = install_dir / entry.working_subdir_override
        else:
            cwd = install_dir
        return argv, str(cwd)
    if entry.launch_url:
        return url_handoff_argv(entry.launch_url), None
    raise MissingLaunchTarget(entry.id)

def spawn(entry: CatalogEntry) -> subprocess.Popen:
    argv, cwd = launch_command(entry)
    log.info(
        "Launching %s: dir=%r subdir=%r command=%r args=%r url=%r",
        entry.title, entry.install_directory, entry.working_subdir_override,
        entry.command, entry.args, entry.launch_url,
    )
    try:
        return subprocess.Popen(argv, cwd=cwd, shell=False)
    except OSError as e:
        raise SpawnFailure(argv, e) from e

# ──────────────────────────────────────────────────────────────────────────────
# Coordinator
# ──────────────────────────────────────────────────────────────────────────────

class LaunchCoordinator:
    """Entry point for tile activation.

    Spawning is synchronous; exit tracking is handed to a LaunchMonitor that
    is created and started on first successful spawn and reused afterwards.
    """

    def __init__(
        self,
        catalog: "Catalog",
        status: Optional[StatusStore] = None,
        *,
        poll_interval: float = 1.0,
        monitor_factory: Optional[Callable[[HandoffChannel[Handoff], StatusStore], LaunchMonitor]] = None,
        autostart: bool = True,
    ):
        self.catalog = catalog
        self.status = status if status is not None else StatusStore()
        self.channel: HandoffChannel[Handoff] = HandoffChannel()
        self.monitor: Optional[LaunchMonitor] = None
        self._poll_interval = poll_interval
        self._monitor_factory = monitor_factory
        self._autostart = autostart
        self._monitor_lock = threading.Lock()

    def _new_monitor(self) -> LaunchMonitor:
        if self._monitor_factory is not None:
            return self._monitor_factory(self.channel, self.status)
        return LaunchMonitor(self.channel, self.status, poll_interval=self._poll_interval)

    def ensure_monitor(self) -> LaunchMonitor:
        with self._monitor_lock:
            if self.monitor is None:
                self.monitor = self._new_monitor()
                if self._autostart:
                    self.monitor.start()
            return self.monitor

    def activate(self, index: int) -> LaunchStatus:
        """Launch catalog entry `index` unless it is already starting or running.

        Returns the entry's status right after the call.
        """
        entry = self.catalog.entries[index]
        if not self.status.begin(index, models.STARTING):
            current = self.status.get(index)
            log.debug("Entry %s already %s; ignoring activation", index, current.kind.value if current else None)
            return current or models.STARTING

        try:
            process = spawn(entry)
        except (MissingLaunchTarget, SpawnFailure) as e:
            log.error("%s", e)
            failed = models.failed_to_launch(str(e))
            self.status.set(index, failed)
            return failed

        self.ensure_monitor()
        self.channel.send((index, Launched(process=process, launcher=entry.launcher, id=entry.id)))
        return models.STARTING

# ──────────────────────────────────────────────────────────────────────────────
# One-shot launch (CLI)
# ──────────────────────────────────────────────────────────────────────────────

def find_title(entries: Sequence[CatalogEntry], title: str) -> Optional[CatalogEntry]:
    # exact match only
    for entry in entries:
        if entry.title == title:
            return entry
    return None

def run_entry(entry: CatalogEntry) -> Tuple[bool, str]:
    """Spawn an entry without tracking it."""
    try:
        spawn(entry)
    except (MissingLaunchTarget, SpawnFailure) as e:
        return False, str(e)
    return True, "Launched."
