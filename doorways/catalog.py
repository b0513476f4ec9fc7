from __future__ import annotations

import enum
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .errors import CatalogError
from .models import CatalogEntry

log = logging.getLogger(__name__)

GAMES_JSON = "games.json"

# ──────────────────────────────────────────────────────────────────────────────
# Merge
# ──────────────────────────────────────────────────────────────────────────────

def _overwrite_source_fields(custom: CatalogEntry, orig: CatalogEntry) -> None:
    # kids / hidden / players are user-owned and stay as they are
    custom.title = orig.title
    custom.image_src = orig.image_src
    custom.installed = orig.installed
    custom.install_directory = orig.install_directory
    custom.working_subdir_override = orig.working_subdir_override
    custom.command = orig.command
    custom.args = list(orig.args) if orig.args is not None else None
    custom.launch_url = orig.launch_url
    custom.launcher = orig.launcher

def merge(existing: List[CatalogEntry], incoming: Iterable[CatalogEntry]) -> List[CatalogEntry]:
    """Fold freshly discovered entries into `existing`, matching by id only.

    Matches are updated in place; unmatched entries are appended in incoming
    order after all matches are processed. Returns `existing`.
    """
    by_id: Dict[str, List[CatalogEntry]] = {}
    for e in existing:
        by_id.setdefault(e.id, []).append(e)

    to_add: List[CatalogEntry] = []
    pending: Dict[str, CatalogEntry] = {}
    for orig in incoming:
        if orig.id in by_id:
            for custom in by_id[orig.id]:
                _overwrite_source_fields(custom, orig)
        elif orig.id in pending:
            # same id twice from one source: keep the first slot, latest data
            _overwrite_source_fields(pending[orig.id], orig)
        else:
            log.info("Added: %s", orig.title)
            pending[orig.id] = orig
            to_add.append(orig)

    existing.extend(to_add)
    return existing

# ──────────────────────────────────────────────────────────────────────────────
# Display filter
# ──────────────────────────────────────────────────────────────────────────────

class DisplayFilter(enum.Enum):
    ALL = "all"
    KIDS = "kids"
    DAD = "dad"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return {"all": "All", "kids": "Kids", "dad": "Dad", "unknown": "Unknown"}[self.value]

    def accepts(self, entry: CatalogEntry) -> bool:
        if self is DisplayFilter.KIDS:
            return entry.kids is True
        if self is DisplayFilter.DAD:
            return entry.kids is False
        if self is DisplayFilter.UNKNOWN:
            return entry.kids is None
        return True

    @classmethod
    def parse(cls, raw: Optional[str], default: Optional["DisplayFilter"] = None) -> "DisplayFilter":
        for f in cls:
            if f.value == (raw or "").lower():
                return f
        return default if default is not None else cls.ALL

# ──────────────────────────────────────────────────────────────────────────────
# Catalog
# ──────────────────────────────────────────────────────────────────────────────

class Catalog:
    """The persisted, title-sorted list of entries plus its cache directory."""

    def __init__(self, cache_dir: Path, entries: Optional[List[CatalogEntry]] = None):
        self.cache_dir = Path(cache_dir)
        self.entries: List[CatalogEntry] = entries if entries is not None else []
        self._on_sort: List[Callable[[], None]] = []

    @property
    def path(self) -> Path:
        return self.cache_dir / GAMES_JSON

    @property
    def image_folder(self) -> Path:
        return self.cache_dir / "images"

    @classmethod
    def load(cls, cache_dir: Path) -> "Catalog":
        """Read games.json if present; a missing file yields an empty catalog."""
        catalog = cls(cache_dir)
        if not catalog.path.exists():
            return catalog
        try:
            raw = json.loads(catalog.path.read_text("utf-8"))
            catalog.entries = [CatalogEntry.from_json(r) for r in raw]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CatalogError(f"Unable to read {catalog.path}: {e}") from e
        catalog.sort()
        return catalog

    def save(self) -> None:
        """Rewrite games.json atomically (temp file, then replace)."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        data = json.dumps([e.to_json() for e in self.entries], indent=2)
        fd, tmp = tempfile.mkstemp(prefix=".games.", suffix=".json", dir=str(self.cache_dir))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def on_sort(self, callback: Callable[[], None]) -> None:
        self._on_sort.append(callback)

    def sort(self) -> None:
        # indices change; anything cached per index must be rebuilt
        self.entries.sort(key=lambda e: e.title)
        for cb in self._on_sort:
            cb()

    def merge(self, incoming: Iterable[CatalogEntry]) -> None:
        merge(self.entries, incoming)

    def refresh(self, providers: Sequence) -> None:
        """Re-read every provider and merge; one provider failing never stops the rest."""
        for entry in self.entries:
            entry.hidden = False
        for provider in providers:
            name = getattr(provider, "name", type(provider).__name__)
            try:
                found = provider.list_installed_and_known_titles()
            except Exception:
                log.exception("Refreshing %s failed", name)
                continue
            log.info("%s games: %d", name, len(found))
            self.merge(found)
        self.sort()

    def displayed(self, display_filter: DisplayFilter, installed: Optional[bool]) -> List[int]:
        return [
            i for i, e in enumerate(self.entries)
            if not e.hidden
            and (installed is None or e.installed == installed)
            and display_filter.accepts(e)
        ]

    def __len__(self) -> int:
        return len(self.entries)
