from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, send_from_directory

from config import get_settings_module

from .checkin.controller import register as register_checkin
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .scoring.controller import register as register_scoring
from .sessions.controller import register as register_sessions

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    upload_dir = Path(getattr(settings, "UPLOAD_DIR", REPO_ROOT / "uploads" / "faces"))
    upload_url_prefix = getattr(settings, "UPLOAD_URL_PREFIX", "/uploads/faces")

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            upload_dir=upload_dir,
            upload_url_prefix=upload_url_prefix,
        )

    @app.route(f"{upload_url_prefix}/<path:filename>", endpoint="captured_face")
    def captured_face(filename: str):
        return send_from_directory(upload_dir, filename)

    register_sessions(app, container)
    register_checkin(app, container)
    register_scoring(app, container)

    return app
