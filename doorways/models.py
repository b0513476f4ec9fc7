from __future__ import annotations

import enum
import subprocess
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class Source(enum.Enum):
    STEAM = "Steam"
    TWITCH = "Twitch"
    EPIC = "Epic"
    UNKNOWN = "Unknown"

    @property
    def requires_probe(self) -> bool:
        # Steam launches are a steam:// trampoline; the game runs under the client.
        return self is Source.STEAM

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Source":
        for s in cls:
            if s.value == raw:
                return s
        return cls.UNKNOWN


@dataclass
class ImageSource:
    kind: str       # "url" | "path"
    value: str

    @classmethod
    def url(cls, value: str) -> "ImageSource":
        return cls("url", value)

    @classmethod
    def path(cls, value: str) -> "ImageSource":
        return cls("path", value)

    @property
    def is_url(self) -> bool:
        return self.kind == "url"

    def to_json(self) -> Dict[str, str]:
        return {"Url" if self.is_url else "Path": self.value}

    @classmethod
    def from_json(cls, data: Any) -> "ImageSource":
        if isinstance(data, dict):
            if "Url" in data:
                return cls.url(str(data["Url"]))
            if "Path" in data:
                return cls.path(str(data["Path"]))
        return cls.path("")


@dataclass
class CatalogEntry:
    id: str
    title: str
    image_src: ImageSource
    installed: bool = False
    launch_url: Optional[str] = None
    install_directory: Optional[str] = None
    working_subdir_override: Optional[str] = None
    command: Optional[str] = None
    args: Optional[List[str]] = None
    launcher: Source = Source.UNKNOWN
    # user-owned
    kids: Optional[bool] = None     # None = unset
    hidden: bool = False
    players: Optional[int] = None
    image_path: Optional[str] = None  # resolved local file, cache only

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "image_path": self.image_path,
            "image_src": self.image_src.to_json(),
            "installed": self.installed,
            "kids": self.kids,
            "hidden": self.hidden,
            "players": self.players,
            "launch_url": self.launch_url,
            "install_directory": self.install_directory,
            "working_subdir_override": self.working_subdir_override,
            "command": self.command,
            "args": self.args,
            "launcher": self.launcher.value,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CatalogEntry":
        kids = data.get("kids")
        args = data.get("args")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", data["id"])),
            image_src=ImageSource.from_json(data.get("image_src")),
            installed=bool(data.get("installed", False)),
            launch_url=data.get("launch_url"),
            install_directory=data.get("install_directory"),
            working_subdir_override=data.get("working_subdir_override"),
            command=data.get("command"),
            args=[str(a) for a in args] if isinstance(args, list) else None,
            launcher=Source.parse(data.get("launcher")),
            kids=kids if isinstance(kids, bool) else None,
            hidden=bool(data.get("hidden") or False),
            players=data.get("players"),
            image_path=data.get("image_path"),
        )


class StatusKind(enum.Enum):
    STARTING = "starting"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED_TO_LAUNCH = "failed_to_launch"
    ERROR = "error"


@dataclass(frozen=True)
class LaunchStatus:
    kind: StatusKind
    reason: Optional[str] = None    # FailedToLaunch
    code: Optional[int] = None      # Error

    @property
    def in_flight(self) -> bool:
        return self.kind in (StatusKind.STARTING, StatusKind.RUNNING)

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.kind.value}
        if self.reason is not None:
            data["reason"] = self.reason
        if self.code is not None:
            data["code"] = self.code
        return data


STARTING = LaunchStatus(StatusKind.STARTING)
RUNNING = LaunchStatus(StatusKind.RUNNING)
SUCCESS = LaunchStatus(StatusKind.SUCCESS)


def failed_to_launch(reason: str) -> LaunchStatus:
    return LaunchStatus(StatusKind.FAILED_TO_LAUNCH, reason=reason)


def error(code: int) -> LaunchStatus:
    return LaunchStatus(StatusKind.ERROR, code=code)


@dataclass
class Launched:
    """A spawned process plus what the monitor needs for a post-exit probe."""
    process: subprocess.Popen
    launcher: Source
    id: str = field(default="")
