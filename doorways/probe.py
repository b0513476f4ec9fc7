from __future__ import annotations

import enum
import os
from pathlib import Path
from typing import Any, List, Optional

import vdf

from .errors import ProbeFailure
from .models import Source
from .sources import default_steam_root
from .utils import home_dir, is_windows

STEAM_APPS_KEY = r"Software\Valve\Steam\Apps"
# same flag, as Steam mirrors HKCU into registry.vdf outside Windows
STEAM_VDF_APPS_PATH = ("Registry", "HKCU", "Software", "Valve", "Steam", "Apps")


class ProbeResult(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def _flag(running: Any) -> ProbeResult:
    return ProbeResult.ACTIVE if str(running).strip() == "1" else ProbeResult.INACTIVE


def _steam_running_winreg(app_id: str) -> ProbeResult:
    import winreg  # type: ignore[import-not-found]

    try:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, f"{STEAM_APPS_KEY}\\{app_id}") as key:
            running, _ = winreg.QueryValueEx(key, "Running")
    except OSError as e:
        raise ProbeFailure(f"Error getting steam status for {app_id}: {e}") from e
    return _flag(running)


def steam_registry_candidates() -> List[Path]:
    env = os.environ.get("DOORWAYS_STEAM_REGISTRY")
    if env:
        return [Path(env).expanduser()]
    found = [home_dir() / ".steam" / "registry.vdf"]
    root = default_steam_root()
    if root is not None:
        # Linux keeps it beside the steam symlink, macOS inside the root
        found += [root.parent / "registry.vdf", root / "registry.vdf"]
    return found


def _child(section: Any, key: str) -> Optional[Any]:
    # Steam is inconsistent about key case ("Apps" vs "apps")
    if not isinstance(section, dict):
        return None
    for k, v in section.items():
        if k.lower() == key.lower():
            return v
    return None


def steam_running_vdf(app_id: str, registry: Path) -> ProbeResult:
    try:
        with open(registry, "r", encoding="utf-8", errors="ignore") as f:
            section: Any = vdf.load(f)
    except (OSError, SyntaxError) as e:
        raise ProbeFailure(f"Unable to read {registry}: {e}") from e
    for key in STEAM_VDF_APPS_PATH + (app_id,):
        section = _child(section, key)
        if section is None:
            raise ProbeFailure(f"No Steam registry entry for {app_id} in {registry}")
    running = _child(section, "Running")
    if running is None:
        raise ProbeFailure(f"No Running flag for {app_id} in {registry}")
    return _flag(running)


def _steam_running(app_id: str) -> ProbeResult:
    if is_windows():
        return _steam_running_winreg(app_id)
    for registry in steam_registry_candidates():
        if registry.exists():
            return steam_running_vdf(app_id, registry)
    raise ProbeFailure("Steam registry.vdf not found")


def probe(source: Source, entry_id: str) -> ProbeResult:
    """Ask the companion client whether a handed-off title is still running."""
    if source is Source.STEAM:
        return _steam_running(entry_id)
    raise ProbeFailure(f"{source.value} has no liveness probe")
