import json
from typing import Dict
from pathlib import Path

SETTINGS_JSON = "settings.json"

def default_settings() -> Dict:
    return {
        "default_filter": "kids",
        "display_installed": True,   # None = any
        "show_overlay": True,
        "allow_filter": False,       # locked: filter query params are ignored
    }

def load_settings(settings_file: Path) -> Dict:
    default = default_settings()
    try:
        if settings_file.exists():
            data = json.loads(settings_file.read_text("utf-8"))
            default.update({k: data.get(k, default[k]) for k in default})
    except (OSError, ValueError):
        pass
    return default

def save_settings(settings_file: Path, settings: dict) -> None:
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    settings_file.write_text(json.dumps(settings, indent=2), encoding="utf-8")
