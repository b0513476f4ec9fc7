import os
from pathlib import Path
from typing import Optional

from flask import Flask

from .catalog import Catalog
from .images import TileImages
from .launch import LaunchCoordinator
from .routes import bp as routes_bp
from .settings import SETTINGS_JSON
from .utils import env_path, home_dir

# Bind only localhost unless overridden
BIND = os.environ.get("BIND", "127.0.0.1")
PORT = int(os.environ.get("PORT", "5000"))
POLL_INTERVAL = float(os.environ.get("DOORWAYS_POLL_INTERVAL", "1.0"))

def doorways_home() -> Path:
    return env_path("DOORWAYS_HOME", home_dir() / ".doorways")

def create_app(catalog: Catalog, coordinator: Optional[LaunchCoordinator] = None,
               tiles: Optional[TileImages] = None) -> Flask:
    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET", "dev-" + os.urandom(8).hex())
    app.config["APP_TITLE"] = "Doorways"
    app.config["CATALOG"] = catalog
    app.config["COORDINATOR"] = coordinator or LaunchCoordinator(catalog, poll_interval=POLL_INTERVAL)
    app.config["TILES"] = tiles or TileImages(catalog)
    app.config["SETTINGS_FILE"] = catalog.cache_dir / SETTINGS_JSON

    app.register_blueprint(routes_bp)
    return app
