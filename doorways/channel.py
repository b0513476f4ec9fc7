from __future__ import annotations

import queue
import threading
from typing import Generic, List, Optional, TypeVar

from .errors import ChannelClosed

T = TypeVar("T")


class HandoffChannel(Generic[T]):
    """Unbounded, ordered, multi-producer/single-consumer queue.

    `send` never blocks and never drops. `try_recv` never blocks: it returns
    None when empty and raises ChannelClosed once closed and drained.
    """

    def __init__(self) -> None:
        self._q: "queue.SimpleQueue[T]" = queue.SimpleQueue()
        self._closed = threading.Event()

    def send(self, item: T) -> None:
        if self._closed.is_set():
            raise ChannelClosed("send on closed handoff channel")
        self._q.put(item)

    def try_recv(self) -> Optional[T]:
        try:
            return self._q.get_nowait()
        except queue.Empty:
            if self._closed.is_set():
                raise ChannelClosed("handoff channel disconnected")
            return None

    def drain(self) -> List[T]:
        items: List[T] = []
        while True:
            item = self.try_recv()
            if item is None:
                return items
            items.append(item)

    def close(self) -> None:
        self._closed.set()
