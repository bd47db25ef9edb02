"""Structured JSON logger for mediaingest.

Every log record is emitted as a single-line JSON object so upload and
collection events can be shipped to a log aggregator without parsing.

Typical structured output::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "INFO",
     "logger": "mediaingest.upload", "message": "Upload succeeded",
     "op": "upload", "name": "kitchen.jpg", "media_type": "image"}

Structured fields go through :func:`~mediaingest.utils.redact.redact`
before they are written, so upload presets and raw file bytes never reach
a log line even when a caller passes them by mistake.

Usage::

    from mediaingest.observability import get_logger

    log = get_logger("mediaingest.collection")
    log.info("URLs added", extra={"extra_fields": {"op": "add_urls", "count": 2}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from mediaingest.utils.redact import redact


def _json_default(value: Any) -> Any:
    """Render values :mod:`json` cannot encode.

    Enums (media types, error codes, upload states) become their value,
    sets become sorted lists, pipeline errors become ``{code, message}``.
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(_json_default(v) if isinstance(v, Enum) else v for v in value)
    code = getattr(value, "code", None)
    message = getattr(value, "message", None)
    if isinstance(value, Exception) and code is not None and message is not None:
        return {"code": _json_default(code) if isinstance(code, Enum) else code, "message": message}
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys are ``ts``, ``level``, ``logger`` and ``message``.
    Fields passed via ``extra={"extra_fields": {...}}`` are redacted and
    merged into the top-level object; exception and stack info are
    serialised when present.

    Parameters
    ----------
    secret:
        A value (typically the configured upload preset) scrubbed from every
        structured field.
    """

    def __init__(self, secret: str | None = None) -> None:
        super().__init__()
        self._secret = secret or None

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields:
            log_entry.update(redact(extra_fields, secret=self._secret))

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=_json_default)


_configured_loggers: set[str] = set()


def get_logger(
    name: str = "mediaingest",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
    secret: str | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Package modules use ``"mediaingest.<area>"``
        (``upload``, ``collection``, ``thumbnail``).
    level:
        Minimum log level, as an ``int`` or a case-insensitive name.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.
    secret:
        Passed to :class:`StructuredFormatter`.  Only honoured on the first
        call for a given *name*.

    Returns
    -------
    logging.Logger
        A logger with a :class:`StructuredFormatter` handler attached.
        Repeated calls with the same *name* do not add duplicate handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter(secret=secret))
        logger.addHandler(handler)

        logger.propagate = False

        _configured_loggers.add(name)

    return logger
