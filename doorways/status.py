from __future__ import annotations

import threading
from typing import Dict, Optional

from .models import LaunchStatus


class StatusStore:
    """Launch status per catalog index, shared by the UI and the monitor thread.

    Absence of an index means it was never launched this session. Only
    immutable LaunchStatus values cross the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._status: Dict[int, LaunchStatus] = {}

    def get(self, index: int) -> Optional[LaunchStatus]:
        with self._lock:
            return self._status.get(index)

    def set(self, index: int, status: LaunchStatus) -> None:
        with self._lock:
            self._status[index] = status

    def begin(self, index: int, status: LaunchStatus) -> bool:
        """Write `status` unless a launch is already in flight. Returns True if written."""
        with self._lock:
            current = self._status.get(index)
            if current is not None and current.in_flight:
                return False
            self._status[index] = status
            return True

    def snapshot(self) -> Dict[int, LaunchStatus]:
        with self._lock:
            return dict(self._status)

    def __contains__(self, index: int) -> bool:
        with self._lock:
            return index in self._status

    def __len__(self) -> int:
        with self._lock:
            return len(self._status)
