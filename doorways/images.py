from __future__ import annotations

import io
import logging
import threading
from pathlib import Path
from typing import Dict, Optional

import requests
from PIL import Image

from .catalog import Catalog
from .models import CatalogEntry
from .utils import filename_from_url

log = logging.getLogger(__name__)

MAX_TILE_WIDTH = 200
MAX_TILE_HEIGHT = 200
DOWNLOAD_TIMEOUT = 30


def download_img(entry: CatalogEntry, folder: Path, session: Optional[requests.Session] = None) -> Path:
    """Fetch a URL image into `folder` once; later calls reuse the file."""
    url = entry.image_src.value
    name = filename_from_url(url)
    if not name:
        raise ValueError(f"Unable to get filename from image url {url!r}")
    folder.mkdir(parents=True, exist_ok=True)
    target = folder / name
    if target.exists():
        return target
    http = session or requests
    resp = http.get(url, timeout=DOWNLOAD_TIMEOUT)
    resp.raise_for_status()
    target.write_bytes(resp.content)
    return target


def resolve_image(entry: CatalogEntry, folder: Path, session: Optional[requests.Session] = None) -> Path:
    if entry.image_src.is_url:
        return download_img(entry, folder, session)
    return Path(entry.image_src.value)


def render_tile(path: Path) -> bytes:
    """Decode and scale an image to fit the tile box, as PNG bytes."""
    with Image.open(path) as im:
        img = im.convert("RGBA")
    w, h = img.size
    if w <= 0 or h <= 0:
        raise ValueError(f"Empty image {path}")
    scale = min(MAX_TILE_WIDTH / w, MAX_TILE_HEIGHT / h)
    size = (max(1, int(w * scale)), max(1, int(h * scale)))
    img = img.resize(size, Image.Resampling.BICUBIC)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class TileImages:
    """Rendered tile images by catalog index, built lazily.

    Cleared whenever the catalog is re-sorted. An entry whose image can't be
    fetched or decoded is marked hidden.
    """

    def __init__(self, catalog: Catalog, session: Optional[requests.Session] = None):
        self.catalog = catalog
        self.session = session
        self._lock = threading.Lock()
        self._images: Dict[int, Optional[bytes]] = {}
        catalog.on_sort(self.clear)

    def clear(self) -> None:
        with self._lock:
            self._images.clear()

    def get(self, index: int) -> Optional[bytes]:
        with self._lock:
            if index in self._images:
                return self._images[index]
        data = self._build(index)
        with self._lock:
            self._images[index] = data
        return data

    def _build(self, index: int) -> Optional[bytes]:
        entry = self.catalog.entries[index]
        try:
            path = resolve_image(entry, self.catalog.image_folder, self.session)
            entry.image_path = str(path)
            return render_tile(path)
        except (OSError, ValueError, requests.RequestException) as e:
            log.warning("Unable to load: %s; %s", entry.title, e)
            entry.hidden = True
            return None

    def load_all(self) -> int:
        """Warm the cache for every entry. Returns how many failed."""
        return sum(1 for i in range(len(self.catalog.entries)) if self.get(i) is None)
