from __future__ import annotations

import importlib
import logging
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS

from config import get_settings_module

from .common.errors import register_error_handlers
from .common.json_provider import ApiJSONProvider
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_default_admin, ensure_default_deductions, missing_tables
from .deductions.controller import register as register_deductions
from .extensions import jwt, limiter
from .income.controller import register as register_income
from .logging_config import configure_logging
from .operation_logs.controller import register as register_operation_logs
from .reports.controller import register as register_reports
from .students.controller import register as register_students
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def _bootstrap_database(db_config: dict, *, init_db: bool, seed_db: bool) -> None:
    if init_db:
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        missing = missing_tables(db_config)
        if missing:
            logger.error("Schema applied but tables are missing: %s", ", ".join(missing))
        else:
            logger.info("Schema ready")
    if seed_db:
        ensure_default_admin(db_config)
        ensure_default_deductions(db_config)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    db_config = getattr(settings, "DB_CONFIG")

    app.config.update(
        SECRET_KEY=getattr(settings, "SECRET_KEY"),
        JWT_SECRET_KEY=getattr(settings, "JWT_SECRET_KEY", getattr(settings, "SECRET_KEY")),
        DEBUG=bool(getattr(settings, "DEBUG", False)),
        TESTING=bool(getattr(settings, "TESTING", False)),
        RATELIMIT_ENABLED=bool(getattr(settings, "RATELIMIT_ENABLED", True)),
        RATELIMIT_DEFAULT=getattr(settings, "RATELIMIT_DEFAULT", "100 per 15 minutes"),
        RATELIMIT_LOGIN=getattr(settings, "RATELIMIT_LOGIN", "5 per 15 minutes"),
        RATELIMIT_STORAGE_URI=getattr(settings, "RATELIMIT_STORAGE_URI", "memory://"),
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        SESSION_COOKIE_SECURE=bool(getattr(settings, "SESSION_COOKIE_SECURE", False)),
        PERMANENT_SESSION_LIFETIME=timedelta(hours=24),
    )
    app.json = ApiJSONProvider(app)

    configure_logging(
        app,
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        log_file=getattr(settings, "LOG_FILE", ""),
    )
    logger.info("Starting with settings=%s", settings_module)

    jwt.init_app(app)
    limiter.init_app(app)
    CORS(
        app,
        origins=getattr(settings, "CORS_ORIGINS", []),
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Forwarded-For"],
    )

    if container is None:
        _bootstrap_database(
            db_config,
            init_db=bool(getattr(settings, "AUTO_INIT_DB", False)),
            seed_db=bool(getattr(settings, "AUTO_SEED_DB", False)),
        )
        container = build_container(db_config=db_config)

    register_error_handlers(app)

    register_users(app, container)
    register_students(app, container)
    register_income(app, container)
    register_deductions(app, container)
    register_reports(app, container)
    register_operation_logs(app, container)

    started = time.monotonic()

    @app.route("/health", methods=["GET"], endpoint="health")
    @limiter.exempt
    def health():
        return jsonify(
            {
                "success": True,
                "message": "Service is running",
                "timestamp": datetime.now().isoformat(timespec="seconds"),
                "uptime": round(time.monotonic() - started, 3),
            }
        )

    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "same-origin"
        return response

    return app
