from __future__ import annotations

import importlib
import logging
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask

from .api.errors import register_error_handlers
from .api.responses import ok
from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .core.constants import DEFAULT_CURRENCY_LABEL
from .dashboard.controller import register as register_dashboard
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .fees.controller import register as register_fees
from .logging_config import configure_logging
from .reminders.controller import register as register_reminders
from .reports.controller import register as register_reports
from .students.controller import register as register_students

logger = logging.getLogger(__name__)


def _setting(settings: Any, name: str, default: Any = None) -> Any:
    if isinstance(settings, dict):
        return settings.get(name, default)
    return getattr(settings, name, default)


def create_app(settings: Any = None, container: Optional[Container] = None) -> Flask:
    """Build the API app.

    ``settings`` may be a settings module or a plain dict; by default the
    module is picked from APP_ENV. Passing ``container`` skips every database
    step (schema, seed, connection) and serves from the given services.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_name = "<explicit>"
    if settings is None:
        settings_name = get_settings_module()
        settings = importlib.import_module(settings_name)

    configure_logging(_setting(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = _setting(settings, "SECRET_KEY", "dev-secret-key")
    app.config["DEBUG"] = bool(_setting(settings, "DEBUG", False))
    app.config["TESTING"] = bool(_setting(settings, "TESTING", False))
    app.config["API_PREFIX"] = (_setting(settings, "API_PREFIX", "/api") or "").rstrip("/")

    if container is None:
        db_config = dict(_setting(settings, "DB_CONFIG", {}))
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_name,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if _setting(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if _setting(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config)
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            currency=_setting(settings, "CURRENCY_LABEL", DEFAULT_CURRENCY_LABEL),
        )

    register_error_handlers(app)

    @app.route("/", methods=["GET"], endpoint="health")
    def health():
        return ok(message="Tuition center API is running")

    register_students(app, container)
    register_fees(app, container)
    register_attendance(app, container)
    register_dashboard(app, container)
    register_reports(app, container)
    register_reminders(app, container)

    return app
