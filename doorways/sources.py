"""
Installed-game providers.

Each provider reads one launcher's local data and returns normalized
CatalogEntry records from `list_installed_and_known_titles()`. Providers raise
SourceError when their data can't be read at all; Catalog.refresh isolates
those failures from the other providers.
"""
from __future__ import annotations

import json
import logging
import os
import sqlite3
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import vdf

from .errors import SourceError
from .models import CatalogEntry, ImageSource, Source
from .utils import env_path, home_dir, is_windows

log = logging.getLogger(__name__)

STEAM_CDN_HEADER = "https://cdn.cloudflare.steamstatic.com/steam/apps/{appid}/header.jpg"


# ──────────────────────────────────────────────────────────────────────────────
# Steam
# ──────────────────────────────────────────────────────────────────────────────

def default_steam_root() -> Optional[Path]:
    env = os.environ.get("DOORWAYS_STEAM_ROOT")
    if env:
        return Path(env).expanduser()
    if is_windows():
        try:
            import winreg  # type: ignore[import-not-found]
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, r"Software\Valve\Steam") as key:
                value, _ = winreg.QueryValueEx(key, "SteamPath")
                return Path(value)
        except OSError:
            return None
    for c in (home_dir() / ".steam" / "steam", home_dir() / ".local" / "share" / "Steam"):
        if c.exists():
            return c
    return None


class SteamSource:
    name = "Steam"

    def __init__(self, root: Optional[Path] = None):
        self.root = root if root is not None else default_steam_root()

    def library_folders(self) -> List[Path]:
        """steamapps folders of every Steam library, the main one first."""
        if self.root is None:
            raise SourceError("Steam installation not found")
        main = self.root / "steamapps"
        folders = [main]
        lf = main / "libraryfolders.vdf"
        if not lf.exists():
            return folders
        try:
            with open(lf, "r", encoding="utf-8", errors="ignore") as f:
                data = vdf.load(f)
        except (OSError, SyntaxError) as e:
            raise SourceError(f"Unable to parse {lf}: {e}") from e
        section = data.get("libraryfolders") or data.get("LibraryFolders") or {}
        for key, value in section.items():
            if not key.isdigit():
                continue
            raw = value.get("path") if isinstance(value, dict) else value
            if not raw:
                continue
            p = Path(raw) / "steamapps"
            if p not in folders and p.exists():
                folders.append(p)
        return folders

    def _image_for(self, appid: str) -> ImageSource:
        if self.root is not None:
            local = self.root / "appcache" / "librarycache" / f"{appid}_library_600x900.jpg"
            if local.exists():
                return ImageSource.path(str(local))
        return ImageSource.url(STEAM_CDN_HEADER.format(appid=appid))

    def _manifests(self) -> Iterator[Dict]:
        for folder in self.library_folders():
            for acf in sorted(folder.glob("appmanifest_*.acf")):
                try:
                    with open(acf, "r", encoding="utf-8", errors="ignore") as f:
                        state = vdf.load(f).get("AppState", {})
                except (OSError, SyntaxError) as e:
                    log.warning("Skipping %s: %s", acf, e)
                    continue
                if state.get("appid") and state.get("name"):
                    yield state

    def list_installed_and_known_titles(self) -> List[CatalogEntry]:
        games = []
        for state in self._manifests():
            appid = str(state["appid"])
            games.append(CatalogEntry(
                id=appid,
                title=state["name"],
                image_src=self._image_for(appid),
                installed=True,
                launch_url=f"steam://rungameid/{appid}",
                launcher=Source.STEAM,
            ))
        return games


# ──────────────────────────────────────────────────────────────────────────────
# Twitch
# ──────────────────────────────────────────────────────────────────────────────

TWITCH_QUERY = (
    "SELECT ProductAsin, ProductTitle, ProductIconUrl, Installed, "
    "InstallDirectory, ProductIdStr FROM DbSet"
)

def default_twitch_db() -> Path:
    return env_path("DOORWAYS_TWITCH_DB", home_dir() / ".twitch" / "GameProductInfo.sqlite")


def read_fuel(install_directory: str) -> Dict:
    """Main launch block of a Twitch game's fuel.json, or {}."""
    fuel = Path(install_directory) / "fuel.json"
    if not fuel.exists():
        return {}
    try:
        data = json.loads(fuel.read_text("utf-8-sig"))
    except (OSError, ValueError) as e:
        log.warning("Unable to read %s: %s", fuel, e)
        return {}
    main = data.get("Main")
    return main if isinstance(main, dict) else {}


class TwitchSource:
    name = "Twitch"

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or default_twitch_db()

    def _rows(self) -> List[sqlite3.Row]:
        if not self.db_path.exists():
            raise SourceError(f"Twitch database not found: {self.db_path}")
        try:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise SourceError(f"Unable to open {self.db_path}: {e}") from e
        try:
            conn.row_factory = sqlite3.Row
            return conn.execute(TWITCH_QUERY).fetchall()
        except sqlite3.Error as e:
            raise SourceError(f"Unable to read {self.db_path}: {e}") from e
        finally:
            conn.close()

    def list_installed_and_known_titles(self) -> List[CatalogEntry]:
        games = []
        for row in self._rows():
            install_directory = row["InstallDirectory"] or None
            installed = bool(row["Installed"])
            main = read_fuel(install_directory) if (installed and install_directory) else {}
            args = main.get("Args")
            command = main.get("Command") or None
            games.append(CatalogEntry(
                id=str(row["ProductAsin"]),
                title=row["ProductTitle"],
                image_src=ImageSource.url(row["ProductIconUrl"] or ""),
                installed=installed,
                install_directory=install_directory,
                working_subdir_override=main.get("WorkingSubdirOverride") or None,
                command=command,
                args=[str(a) for a in args] if isinstance(args, list) and args else None,
                launch_url=f"twitch://fuel-launch/{row['ProductIdStr']}" if row["ProductIdStr"] else None,
                launcher=Source.TWITCH,
            ))
        return games


# ──────────────────────────────────────────────────────────────────────────────
# Epic
# ──────────────────────────────────────────────────────────────────────────────

def default_epic_manifests() -> Path:
    if is_windows():
        fallback = Path(os.environ.get("ProgramData", r"C:\ProgramData")) / "Epic" / "EpicGamesLauncher" / "Data" / "Manifests"
    else:
        fallback = home_dir() / ".epic"
    return env_path("DOORWAYS_EPIC_MANIFESTS", fallback)


def epic_image_url(item: Dict) -> Optional[str]:
    """Prefer the tall box art among KeyImages."""
    images = [k for k in item.get("KeyImages") or [] if isinstance(k, dict) and k.get("Url")]
    for k in images:
        if k.get("Type") == "DieselGameBoxTall":
            return k["Url"]
    return images[0]["Url"] if images else None


class EpicSource:
    name = "Epic"

    def __init__(self, manifests: Optional[Path] = None):
        self.manifests = manifests or default_epic_manifests()

    def list_installed_and_known_titles(self) -> List[CatalogEntry]:
        if not self.manifests.is_dir():
            raise SourceError(f"Epic manifests folder not found: {self.manifests}")
        games = []
        for item_file in sorted(self.manifests.glob("*.item")):
            try:
                item = json.loads(item_file.read_text("utf-8"))
            except (OSError, ValueError) as e:
                log.warning("Skipping %s: %s", item_file, e)
                continue
            title = item.get("DisplayName")
            image = epic_image_url(item)
            if not title or not image:
                continue
            games.append(CatalogEntry(
                id=title,
                title=title,
                image_src=ImageSource.url(image),
                installed=True,
                install_directory=item.get("InstallLocation"),
                command=item.get("LaunchExecutable"),
                launcher=Source.EPIC,
            ))
        return games


def default_sources() -> list:
    # merge order matters for which source wins an id collision
    return [SteamSource(), TwitchSource(), EpicSource()]
