from __future__ import annotations

import argparse
import logging
import sys
import webbrowser
from pathlib import Path
from typing import List, Optional, Sequence

from . import BIND, PORT, create_app, doorways_home
from .catalog import Catalog
from .errors import CatalogError
from .launch import find_title, run_entry
from .sources import default_sources
from .utils import configure_logging

log = logging.getLogger(__name__)


def _bool_arg(raw: str) -> bool:
    v = raw.strip().lower()
    if v in ("true", "1", "yes"):
        return True
    if v in ("false", "0", "no"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {raw!r}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="doorways", description="A unified launcher for common game libraries.")
    p.add_argument("--launcher", action="store_true", help="Display graphical launcher.")
    p.add_argument("-i", "--installed", type=_bool_arg, default=True, metavar="{true,false}",
                   help="Limit operations to just the installed games.")
    p.add_argument("--list", action="store_true", help="List the known games.")
    p.add_argument("--refresh", action="store_true", help="Refresh the list of games from source.")
    p.add_argument("-l", "--launch", metavar="TITLE", help="Launch the specified game.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return p


def run_launcher(catalog: Catalog, open_browser: bool = True) -> None:
    """Serve the tile grid until interrupted, then persist the catalog."""
    app = create_app(catalog)
    log.info("Current game count: %d", len(catalog))
    app.config["TILES"].load_all()
    if open_browser:
        webbrowser.open(f"http://{BIND}:{PORT}/")
    try:
        app.run(host=BIND, port=PORT, debug=False)
    finally:
        log.info("Game count before save: %d", len(catalog))
        catalog.save()


def main(argv: Optional[Sequence[str]] = None, *, home: Optional[Path] = None,
         sources: Optional[List] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    home = home or doorways_home()
    try:
        catalog = Catalog.load(home)
    except CatalogError as e:
        print(e, file=sys.stderr)
        return 1

    if args.refresh:
        log.info("Creating initial games list.")
        catalog.refresh(sources if sources is not None else default_sources())
        if not args.launcher:
            catalog.save()

    if args.launcher:
        run_launcher(catalog)
        return 0

    if args.list:
        for game in catalog.entries:
            if args.installed and not game.installed:
                continue
            print(game.title)
        return 0

    if args.launch is not None:
        entry = find_title(catalog.entries, args.launch)
        if entry is None:
            print(f"Unable to find game {args.launch}", file=sys.stderr)
            return 0
        ok, msg = run_entry(entry)
        if not ok:
            print(msg, file=sys.stderr)
            return 1
        return 0

    return 0
