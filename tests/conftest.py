from __future__ import annotations
import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Ensure project root import
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from doorways.models import CatalogEntry, ImageSource


def make_entry(id: str, title: Optional[str] = None, **kw) -> CatalogEntry:
    kw.setdefault("image_src", ImageSource.path(""))
    return CatalogEntry(id=id, title=title if title is not None else id, **kw)


class FakeProcess:
    """Stands in for a Popen handle; poll() replays scripted results."""

    def __init__(self, results: List[Optional[int]]):
        self.results = list(results)
        self.polls = 0

    def poll(self):
        self.polls += 1
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


class FakePopen:
    """Records every spawn instead of creating a process."""

    calls: list = []

    def __init__(self, argv, **kw):
        FakePopen.calls.append((argv, kw))
        self.argv = argv
        self.kw = kw

    def poll(self):
        return None


@pytest.fixture
def fake_popen(monkeypatch):
    import doorways.launch as L
    FakePopen.calls = []
    monkeypatch.setattr(L.subprocess, "Popen", FakePopen)
    return FakePopen
