"""
Structured logging configuration.

structlog builds the event dict; the last processor hands it to stdlib logging
as ``msg`` plus ``extra`` so python-json-logger writes each event as one flat
JSON object per line.
"""
import logging
import sys
from typing import Any, Callable, Optional

import structlog
from pythonjsonlogger.json import JsonFormatter

from payment_relay.config import Settings, get_settings

# stdlib record attribute -> emitted key
RECORD_FIELDS = {
    "asctime": "@timestamp",
    "levelname": "level",
    "name": "logger",
}

QUIET_LOGGERS = {
    "urllib3": logging.WARNING,
    "stripe": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


def app_context_processor(settings: Settings) -> Callable[..., dict]:
    """
    Build a processor adding application context to log events.

    Args:
        settings: Settings providing app name and environment

    Returns:
        Callable: structlog processor
    """

    def add_app_context(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict.setdefault("app_name", settings.app_name)
        event_dict.setdefault("app_env", settings.app_env)
        event_dict.setdefault("payment_environment", settings.payment_environment)
        return event_dict

    return add_app_context


def build_formatter() -> JsonFormatter:
    """JSON formatter shared by every handler on the root logger."""
    return JsonFormatter(
        " ".join(f"%({field})s" for field in (*RECORD_FIELDS, "message")),
        rename_fields=RECORD_FIELDS,
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structlog and the root logger.

    Safe to call more than once; the root handlers are replaced each time.
    """
    settings = settings or get_settings()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            app_context_processor(settings),
            structlog.stdlib.render_to_log_kwargs,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level))
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter())
    root_logger.addHandler(handler)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    structlog.get_logger(__name__).info(
        "logging_configured",
        log_level=settings.log_level,
        app_env=settings.app_env,
    )
