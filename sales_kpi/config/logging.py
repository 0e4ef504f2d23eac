"""
Logging Configuration for the Daily Sales KPI Service

Structured logging via structlog, rendered through the standard library handlers.

Every record carries the service name and environment. Records emitted while
serving a request also carry its request_id (bound by the request middleware),
and records emitted while computing a summary carry the report_date being
computed, so a KPI run can be followed end to end in the JSON output.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter
from structlog.typing import EventDict, Processor, WrappedLogger

from sales_kpi.config.settings import get_settings

LOG_FORMATS = ("json", "console")

# Request lines come from RequestLoggingMiddleware; uvicorn's own access log
# would repeat them without the request id.
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error")
_QUIET_LOGGERS = ("uvicorn.access",)


def add_service_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp each record with the service name and environment"""
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("environment", settings.app_env)
    return event_dict


def build_renderer(log_format: str) -> Processor:
    """
    Final renderer for the chosen format.

    json renders exceptions as structured dicts for log shippers; console
    prints coloured tracebacks when stdout is a terminal.

    Raises:
        ValueError: unknown format
    """
    if log_format == "json":
        return JSONRenderer()
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    raise ValueError(f"Log format must be one of {LOG_FORMATS}, got {log_format!r}")


def configure_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structured logging for the API and the setup script.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        log_format: Override renderer ("json" or "console")
    """
    settings = get_settings()
    level = (log_level or settings.monitoring.log_level).upper()
    fmt = (log_format or settings.monitoring.log_format).lower()
    renderer = build_renderer(fmt)

    numeric_level = getattr(logging, level, logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        add_service_context,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if fmt == "json":
        shared_processors.append(structlog.processors.dict_tracebacks)

    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True
        uvicorn_logger.setLevel(numeric_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # SQL echo is a database setting, independent of the application level
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database.echo else logging.WARNING
    )

    structlog.get_logger(__name__).info("Logging configured", level=level, format=fmt)
