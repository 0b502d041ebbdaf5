from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .app_logger import setup_logging
from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, has_open_session_guard, list_tables
from .events.controller import register as register_events
from .notifications.controller import register as register_notifications
from .scans.controller import register as register_scans

REPO_ROOT = Path(__file__).resolve().parents[3]


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["ADMIN_API_KEY"] = getattr(settings, "ADMIN_API_KEY", "")

    logger = setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

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
            if not has_open_session_guard(db_config):
                logger.warning("attendance_sessions is missing its open-session unique index")
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            logger.info("demo seed ready")

        container = build_container(settings)

    app.extensions["eduride"] = container

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"}), 200

    @app.cli.command("retry-notifications")
    @click.option("--limit", default=100, show_default=True, help="Maximum failed notifications to retry.")
    def retry_notifications(limit: int):
        """Send failed guardian notifications again."""
        retried = container.delivery.retry_failed(limit=limit)
        click.echo(f"Retried {retried} failed notifications")

    register_scans(app, container)
    register_attendance(app, container)
    register_events(app, container)
    register_notifications(app, container)

    return app
