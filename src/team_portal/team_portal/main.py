from __future__ import annotations

import atexit
import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging_setup import setup_logging
from .container import build_container
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .leave.controller import register as register_leave
from .notifications.controller import register as register_notifications
from .projects.controller import register as register_projects
from .tasks.controller import register as register_tasks
from .tickets.controller import register as register_tickets
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

MAIL_SETTINGS = ("SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASSWORD", "SMTP_USE_TLS", "MAIL_FROM", "ADMIN_EMAIL")


def create_app() -> Flask:
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", None))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if getattr(settings, "AUTO_INIT_DB", False):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
    if getattr(settings, "AUTO_SEED_DB", False):
        ensure_demo_users(db_config)

    mail_settings = {name: getattr(settings, name, None) for name in MAIL_SETTINGS}
    container = build_container(db_config=db_config, mail_settings=mail_settings)
    app.extensions["team_portal"] = container

    container.dispatcher.start()
    atexit.register(container.dispatcher.stop)

    register_users(app, container)
    register_projects(app, container)
    register_tasks(app, container)
    register_tickets(app, container)
    register_attendance(app, container)
    register_leave(app, container)
    register_notifications(app, container)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    return app
