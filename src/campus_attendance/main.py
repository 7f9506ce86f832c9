from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .accounts.controller import register as register_accounts
from .attendance.controller import register as register_attendance
from .common.logging_setup import configure_logging
from .common.serialization import to_json
from .container import Container, build_container
from .core.exceptions import DomainError, PartialPropagationFailure
from .dashboard.controller import register as register_dashboard
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_accounts, list_tables
from .subjects.controller import register as register_subjects

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[2]

_SETTING_NAMES = (
    "DEBUG",
    "TESTING",
    "LOG_LEVEL",
    "INSTRUCTOR_MAX_DEVICES",
    "STUDENT_MAX_DEVICES",
)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(PartialPropagationFailure)
    def partial_failure(err: PartialPropagationFailure):
        body = {
            "success": False,
            "status": "partial",
            "message": str(err),
            "data": to_json(err.session),
            "failedStudentIds": err.failed_student_ids,
        }
        return jsonify(body), err.status_code

    @app.errorhandler(DomainError)
    def domain_error(err: DomainError):
        return jsonify({"success": False, "status": "fail", "message": str(err)}), err.status_code

    @app.errorhandler(Exception)
    def unexpected_error(err: Exception):
        if isinstance(err, HTTPException):
            return err
        logger.error("unhandled error", exc_info=err)
        return jsonify({"success": False, "status": "error", "message": "Something went wrong!"}), 500


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    for name in _SETTING_NAMES:
        if hasattr(settings, name):
            app.config[name] = getattr(settings, name)
    app.config["DEBUG"] = bool(app.config.get("DEBUG", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module, db_config.get("user"), db_config.get("host"), db_config.get("port", 3306),
            db_config.get("database"),
        )
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            ensure_demo_accounts(db_config)
        container = build_container(db_config=db_config, settings=app.config)

    app.extensions["campus_attendance"] = container
    register_error_handlers(app)
    register_accounts(app, container)
    register_subjects(app, container)
    register_attendance(app, container)
    register_dashboard(app, container)
    return app
