from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.datetime_utils import parse_clock
from .common.logging_config import setup_logging
from .common.web import register_error_handlers
from .container import TimekeepingSettings, build_container
from .database.bootstrap import apply_schema, list_tables
from .attendance.controller import register as register_attendance
from .leave.controller import register as register_leave
from .overtime.controller import register as register_overtime
from .payroll.controller import register as register_payroll
from .requests.controller import register as register_requests

logger = logging.getLogger(__name__)


def _timekeeping_settings(settings) -> TimekeepingSettings:
    defaults = TimekeepingSettings()
    expected = getattr(settings, "EXPECTED_TIME_IN", None)
    years_back, years_forward = getattr(
        settings, "LEAVE_BANK_YEAR_WINDOW", (defaults.leave_years_back, defaults.leave_years_forward)
    )
    return TimekeepingSettings(
        expected_time_in=parse_clock(expected) if expected else defaults.expected_time_in,
        default_break_minutes=int(getattr(settings, "DEFAULT_BREAK_MINUTES", defaults.default_break_minutes)),
        standard_work_minutes=int(getattr(settings, "STANDARD_WORK_MINUTES", defaults.standard_work_minutes)),
        leave_years_back=int(years_back),
        leave_years_forward=int(years_forward),
    )


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), bool(getattr(settings, "LOG_JSON", False)))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(db_config=db_config, settings=_timekeeping_settings(settings))

    register_error_handlers(app)
    register_attendance(app, container)
    register_overtime(app, container)
    register_leave(app, container)
    register_requests(app, container)
    register_payroll(app, container)

    return app
