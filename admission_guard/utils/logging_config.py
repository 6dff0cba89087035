"""Structured JSON logging for the admission engine.

Every record renders as one JSON line. Keyword arguments given to a logger
obtained from :func:`get_logger` become top-level fields, so
``logger.warning("Actor blocked", event="admission.block.applied", actor=ip)``
yields ``{"event": "admission.block.applied", "actor": "...", ...}``.
"""

from __future__ import annotations

import json
import logging
import os
import socket
import traceback
from collections.abc import Iterable, MutableMapping
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

__all__ = [
    "SERVICE_NAME",
    "configure_logging",
    "get_logger",
    "StructuredJSONFormatter",
    "StructuredLoggerAdapter",
]

SERVICE_NAME = "admission_guard"

# Attributes every LogRecord carries; anything else on a record is a field
_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

_LOGGER_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})

_configured = False


@lru_cache(maxsize=1)
def _get_host() -> str:
    host = os.getenv("HOSTNAME")
    if host:
        return host
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"


class StructuredJSONFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": SERVICE_NAME,
            "host": _get_host(),
        }
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_") or key in payload:
                continue
            payload[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            payload["error"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stack": "".join(traceback.format_exception(exc_type, exc, tb)).strip(),
            }
        return json.dumps(payload, default=repr, ensure_ascii=True)


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Move keyword arguments into ``extra``.

    Fields fixed at construction (``get_logger(name, component="sweeper")``)
    are added to every record unless the call supplies the same key.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.pop("extra", None) or {})
        for key in [k for k in kwargs if k not in _LOGGER_KWARGS]:
            extra[key] = kwargs.pop(key)
        for key, value in (self.extra or {}).items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs


def configure_logging(
    level: int = logging.INFO,
    *,
    stream: Any | None = None,
    handlers: Iterable[logging.Handler] | None = None,
) -> None:
    """Replace the root handlers with JSON-formatted ones at ``level``."""
    global _configured

    resolved = list(handlers) if handlers else [logging.StreamHandler(stream)]
    root = logging.getLogger()
    root.handlers = []
    for handler in resolved:
        if handler.formatter is None:
            handler.setFormatter(StructuredJSONFormatter())
        root.addHandler(handler)
    root.setLevel(level)
    _configured = True


def get_logger(name: str, **fields: Any) -> StructuredLoggerAdapter:
    """Return a structured adapter, configuring the root logger on first use."""
    if not _configured:
        configure_logging()
    return StructuredLoggerAdapter(
        logging.getLogger(name), {k: v for k, v in fields.items() if v is not None}
    )
