"""Logging setup with Logfire integration.

Logfire itself is configured through its environment variables
(``LOGFIRE_TOKEN``, ``LOGFIRE_SERVICE_NAME``, ``LOGFIRE_ENVIRONMENT``); this
module routes structlog and the standard library logger through it.
"""

import logging
import sys

import logfire
import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.types import EventDict, Processor, WrappedLogger

from .base import LOG_LEVEL

# Chatty HTTP libraries only log at DEBUG when slate itself does
HTTP_LOGGERS = ("httpx", "httpcore")


def flatten_extra(_logger: WrappedLogger, _method_name: str, event_dict: EventDict) -> EventDict:
    """Lift the ``extra`` mapping passed to log calls into the event."""
    extra = event_dict.pop("extra", None)
    if isinstance(extra, dict):
        for key, value in extra.items():
            event_dict.setdefault(key, value)
    return event_dict


def add_error_type(_logger: WrappedLogger, _method_name: str, event_dict: EventDict) -> EventDict:
    error_context = event_dict.get("error_context")
    if isinstance(error_context, dict) and "error_type" in error_context:
        event_dict["error_type"] = error_context["error_type"]
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.MODULE,
                CallsiteParameter.LINENO,
                CallsiteParameter.FUNC_NAME,
            ]
        ),
        flatten_extra,
        add_error_type,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]


def setup_logging(level: str | None = None, json_logs: bool = False) -> None:
    """Configure structlog and the root logger.

    Args:
        level: Minimum level name; falls back to ``Settings.log_level``
        json_logs: Render JSON lines instead of the colored console format
    """
    if level is None:
        from slate.core.config import settings

        level = settings.log_level or LOG_LEVEL
    numeric_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    renderers: list[Processor]
    if json_logs:
        renderers = [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]

    shared = _shared_processors()
    structlog.configure(
        # Logfire must see the event before it is rendered
        processors=[*shared, logfire.StructlogProcessor(), *renderers],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
            foreign_pre_chain=shared,
        ),
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(numeric_level)

    http_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
