"""Logging setup for the Gatekeeper API.

Everything goes through the standard :mod:`logging` module. A single console
handler renders one line per record::

    2026-03-02T10:14:07.118Z INFO  gatekeeper_api.core.authz.guard [cid=9f3c] authz.deny requirement=task:create reason=not_permitted

Structured fields are passed as ``extra=log_context(...)`` and appended as
``key=value`` pairs. The correlation ID comes from a context variable bound by
the request middleware.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from gatekeeper_api.settings import Settings

_correlation_id: ContextVar[str | None] = ContextVar("gatekeeper_correlation_id", default=None)

# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "correlation_id", "color_message", "taskName"}

# Third-party loggers that should flow into our handler instead of their own.
_ADOPTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy")

_INSTALLED_MARKER = "_gatekeeper_handler"


class ConsoleLogFormatter(logging.Formatter):
    """Single-line formatter with UTC millisecond timestamps and ``extra`` fields."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-5s %(name)s [cid=%(correlation_id)s] %(message)s",
        )

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        moment = datetime.fromtimestamp(record.created, tz=UTC)
        return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{int(record.msecs):03d}Z"

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = (
            getattr(record, "correlation_id", None) or _correlation_id.get() or "-"
        )
        line = super().format(record)
        fields = [
            f"{key}={_render(value)}"
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        ]
        return " ".join([line, *fields]) if fields else line


class _CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = _correlation_id.get()
        return True


def setup_logging(settings: Settings) -> None:
    """Install the console handler on the root logger.

    The level comes from ``GATEKEEPER_LOGGING_LEVEL``. Repeated calls (one per
    ``create_app``) only adjust the level.
    """

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.logging_level.upper(), logging.INFO))
    if getattr(root, _INSTALLED_MARKER, False):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(ConsoleLogFormatter())
    handler.addFilter(_CorrelationIdFilter())
    root.handlers = [handler]

    for name in _ADOPTED_LOGGERS:
        adopted = logging.getLogger(name)
        adopted.handlers.clear()
        adopted.propagate = True

    setattr(root, _INSTALLED_MARKER, True)


def bind_request_context(correlation_id: str | None) -> None:
    _correlation_id.set(correlation_id)


def clear_request_context() -> None:
    _correlation_id.set(None)


def current_correlation_id() -> str | None:
    return _correlation_id.get()


def log_context(**fields: Any) -> dict[str, Any]:
    """Build an ``extra`` payload, dropping fields whose value is ``None``.

    Example::

        logger.info("tasks.create.success", extra=log_context(task_id=str(task.id)))
    """

    return {key: value for key, value in fields.items() if value is not None}


def _render(value: Any) -> str:
    return "null" if value is None else str(value)


__all__ = [
    "ConsoleLogFormatter",
    "bind_request_context",
    "clear_request_context",
    "current_correlation_id",
    "log_context",
    "setup_logging",
]
