from __future__ import annotations
import io
from typing import Optional

from markupsafe import escape
from flask import Blueprint, abort, current_app, jsonify, redirect, render_template_string, request, send_file, url_for

from .catalog import Catalog, DisplayFilter
from .images import TileImages
from .launch import LaunchCoordinator
from .models import StatusKind
from .settings import load_settings, save_settings
from .templates import INDEX_HTML

bp = Blueprint("doorways", __name__)

STATUS_COLORS = {
    StatusKind.STARTING: "rgba(0,0,0,.4)",
    StatusKind.RUNNING: "#00ff00",
    StatusKind.SUCCESS: "#ff00ff",
    StatusKind.ERROR: "#ff0000",
    StatusKind.FAILED_TO_LAUNCH: "#cccccc",
}

def _cfg():
    c = current_app.config
    catalog: Catalog = c["CATALOG"]
    coordinator: LaunchCoordinator = c["COORDINATOR"]
    tiles: TileImages = c["TILES"]
    return catalog, coordinator, tiles, c["SETTINGS_FILE"], c["APP_TITLE"]

def _entry_index_or_404(catalog: Catalog, index: int) -> int:
    if index < 0 or index >= len(catalog.entries):
        abort(404)
    return index

def _parse_installed(raw: Optional[str], default: Optional[bool]) -> Optional[bool]:
    if raw is None:
        return default
    raw = raw.lower()
    if raw in ("any", ""):
        return None
    return raw in ("1", "true", "yes")

def window_title(app_title: str, count: int, df: DisplayFilter, installed: Optional[bool], allow_filter: bool = False) -> str:
    install_filter = {None: "", True: "[Installed]", False: "[Not Installed]"}[installed]
    lock = "\N{KEY}" if allow_filter else "\N{LOCK}"
    return f"{app_title} {count} (Filter: {df.label}{install_filter}{lock})"

def _status_payload(coordinator: LaunchCoordinator) -> dict:
    snap = coordinator.status.snapshot()
    return {
        str(i): dict(st.to_json(), color=STATUS_COLORS[st.kind])
        for i, st in snap.items()
    }

@bp.get("/")
def index():
    catalog, coordinator, _, SETTINGS_FILE, APP_TITLE = _cfg()
    settings = load_settings(SETTINGS_FILE)
    allow_filter = bool(settings["allow_filter"])
    df = DisplayFilter.parse(settings["default_filter"])
    installed = settings["display_installed"]
    if allow_filter:
        df = DisplayFilter.parse(request.args.get("filter"), df)
        installed = _parse_installed(request.args.get("installed"), installed)
    displayed = catalog.displayed(df, installed)

    return render_template_string(
        INDEX_HTML,
        app_title=APP_TITLE,
        window_title=window_title(APP_TITLE, len(displayed), df, installed, allow_filter),
        tiles=[(i, catalog.entries[i]) for i in displayed],
        filters=list(DisplayFilter),
        current_filter=df,
        installed=installed,
        allow_filter=allow_filter,
        show_overlay=settings["show_overlay"],
        edit_mode=request.args.get("edit") == "1",
        statuses=_status_payload(coordinator),
    )

@bp.get("/tile/<int:index>")
def tile(index: int):
    catalog, _, tiles, *_ = _cfg()
    _entry_index_or_404(catalog, index)
    data = tiles.get(index)
    if data is not None:
        return send_file(io.BytesIO(data), mimetype="image/png")
    title = escape(catalog.entries[index].title[:32])
    svg = f"""
    <svg xmlns="http://www.w3.org/2000/svg" width="200" height="200">
      <rect width="100%" height="100%" fill="#1f2630"/>
      <text x="50%" y="50%" fill="#e0e6ee" font-size="14" text-anchor="middle" dominant-baseline="middle">
        {title}
      </text>
    </svg>
    """
    return send_file(io.BytesIO(svg.encode("utf-8")), mimetype="image/svg+xml")

@bp.post("/activate/<int:index>")
def activate(index: int):
    catalog, coordinator, *_ = _cfg()
    _entry_index_or_404(catalog, index)
    status = coordinator.activate(index)
    ok = status.kind is not StatusKind.FAILED_TO_LAUNCH
    return jsonify(dict(status.to_json(), ok=ok, index=index)), (200 if ok else 500)

@bp.get("/status")
def status():
    _, coordinator, *_ = _cfg()
    return jsonify(_status_payload(coordinator))

@bp.post("/entry/<int:index>/kids")
def set_kids(index: int):
    catalog, *_ = _cfg()
    _entry_index_or_404(catalog, index)
    value = (request.form.get("kids") or "").lower()
    if value not in ("yes", "no", "unset"):
        abort(400)
    catalog.entries[index].kids = {"yes": True, "no": False, "unset": None}[value]

    if request.accept_mimetypes.accept_json and not request.accept_mimetypes.accept_html:
        return jsonify({"ok": True, "index": index, "kids": catalog.entries[index].kids})
    return redirect(request.referrer or url_for("doorways.index", edit=1))

@bp.post("/settings")
def settings_post():
    _, _, _, SETTINGS_FILE, _ = _cfg()
    settings = load_settings(SETTINGS_FILE)
    # filter defaults only change while the filter is unlocked
    if "default_filter" in request.form and settings["allow_filter"]:
        settings["default_filter"] = DisplayFilter.parse(request.form["default_filter"]).value
    if "display_installed" in request.form and settings["allow_filter"]:
        settings["display_installed"] = _parse_installed(request.form["display_installed"], None)
    if "show_overlay" in request.form:
        settings["show_overlay"] = request.form["show_overlay"] in ("1", "true", "on")
    save_settings(SETTINGS_FILE, settings)
    return redirect(url_for("doorways.index"))

@bp.post("/filter-lock")
def toggle_filter_lock():
    _, _, _, SETTINGS_FILE, _ = _cfg()
    settings = load_settings(SETTINGS_FILE)
    settings["allow_filter"] = not settings["allow_filter"]
    save_settings(SETTINGS_FILE, settings)

    if request.accept_mimetypes.accept_json and not request.accept_mimetypes.accept_html:
        return jsonify({"ok": True, "allow_filter": settings["allow_filter"]})
    return redirect(url_for("doorways.index"))

@bp.get("/favicon.ico")
def favicon():
    return ("", 204)
