import logging
import os
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

def is_windows() -> bool:
    return os.name == "nt"

def is_macos() -> bool:
    return sys.platform == "darwin"

def home_dir() -> Path:
    return Path(os.path.expanduser("~"))

def filename_from_url(url: str) -> Optional[str]:
    """Last path segment of a URL, or None when there is none."""
    path = urlparse(url).path
    name = unquote(path.rsplit("/", 1)[-1]) if path else ""
    return name or None

def env_path(name: str, default: Path) -> Path:
    raw = os.environ.get(name)
    return Path(raw).expanduser() if raw else default

def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        stream=sys.stderr,
    )
