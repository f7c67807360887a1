from __future__ import annotations

import importlib
from typing import Optional

import structlog
from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging import setup_logging
from .common.web import handle_domain_error
from .container import Container, build_container
from .core.constants import DEFAULT_CIVIL_TIMEZONE, DEFAULT_REPAIR_WINDOW_DAYS, DEFAULT_REPORT_DAYS
from .core.exceptions import DomainError
from .database.bootstrap import apply_schema, list_tables
from .maintenance.controller import register as register_maintenance
from .payroll.controller import register as register_payroll
from .requests.controller import register as register_requests

log = structlog.get_logger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory; pass ``container`` to run on other storage collaborators."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        log.info(
            "app_starting",
            settings=settings_module,
            db=f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            log.info("schema_ready", tables=len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            civil_timezone=getattr(settings, "CIVIL_TIMEZONE", DEFAULT_CIVIL_TIMEZONE),
            repair_window_days=int(getattr(settings, "REPAIR_WINDOW_DAYS", DEFAULT_REPAIR_WINDOW_DAYS)),
            report_default_days=int(getattr(settings, "REPORT_DEFAULT_DAYS", DEFAULT_REPORT_DAYS)),
        )

    app.register_error_handler(DomainError, handle_domain_error)

    register_attendance(app, container)
    register_payroll(app, container)
    register_requests(app, container)
    register_maintenance(app, container)

    return app


if __name__ == "__main__":
    create_app().run()
