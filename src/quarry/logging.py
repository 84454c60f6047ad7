"""
Structured logging for quarry.

Modules log through ``get_logger(__name__)``. Applications call
``configure_logging()`` once at startup; arguments left as None are taken
from :class:`~quarry.config.QuarrySettings` (``QUARRY_LOG_LEVEL``,
``QUARRY_LOG_FORMAT``).

Architecture:
    ::

        configure_logging(level=None, json_format=None)
            ↓  (None → QuarrySettings.log_level / json_logs())
        processor chain:
          merge_contextvars → TimeStamper → add_log_level
          → add_logger_name → _add_service_metadata → renderer

    The processor wraps every statement in ``LogContext(connection=...)``,
    so ``query_resolved``, ``transaction_*`` and ``query_failed`` events
    carry the profile name without each call passing it.

Guardrails:
    ❌ DON'T: Log bound parameter values
    ✅ DO: Log placeholder names and the rewritten SQL

Tags:
    logging, structlog, quarry
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from quarry.config.settings import get_settings

_SERVICE_NAME = "quarry"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
    service: str = "quarry",
) -> None:
    """Configure structlog for the application.

    Args:
        level: Log level name; None reads ``QuarrySettings.log_level``
        json_format: True for JSON, False for console; None reads
            ``QuarrySettings.log_format`` and falls back to JSON when
            stdout is not a tty
        service: Value of the ``service`` field on every event
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    settings = get_settings()
    level = (level or settings.log_level).upper()
    if json_format is None:
        json_format = settings.json_logs()
    if json_format is None:
        json_format = not sys.stdout.isatty()

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _add_service_metadata,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=getattr(logging, level))


def get_logger(name: str | None = None) -> Any:
    """Structured logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


class LogContext:
    """Bind context variables for the duration of a ``with`` block.

    Values bound by an enclosing block are restored on exit, so contexts
    nest::

        with LogContext(connection="reporting"):
            builder.select().from_("orders").get()
    """

    def __init__(self, **values: Any):
        self._values = values
        self._tokens: Any = None

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._values)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)


__all__ = [
    "LogContext",
    "configure_logging",
    "get_logger",
]
