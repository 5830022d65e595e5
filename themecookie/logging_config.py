from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from themecookie.logging_context import RequestIdFilter

REDACTED = "[REDACTED]"
DEFAULT_REDACT_FIELDS: frozenset[str] = frozenset(
    {
        "password",
        "csrf_token",
        "session",
        "session_secret_key",
        "cookie",
        "set-cookie",
        "authorization",
    }
)

# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_RECORD_ATTRS: frozenset[str] = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)
_DROPPED_RECORD_ATTRS: frozenset[str] = frozenset({"color_message"})


def parse_redact_fields(raw_value: str) -> frozenset[str]:
    extra = {part.strip().lower() for part in raw_value.split(",") if part.strip()}
    return DEFAULT_REDACT_FIELDS | extra


def _redact(value: Any, redact_fields: frozenset[str]) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in redact_fields else _redact(item, redact_fields)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(item, redact_fields) for item in value]
    return value


def _record_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_RECORD_ATTRS and key not in _DROPPED_RECORD_ATTRS
    }


class JsonLogFormatter(logging.Formatter):
    def __init__(self, *, redact_fields: frozenset[str] = DEFAULT_REDACT_FIELDS) -> None:
        super().__init__()
        self._redact_fields = redact_fields

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": timestamp.strftime("%Y-%m-%d %H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        payload.update(_record_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(_redact(payload, self._redact_fields), default=str)


class ConsoleLogFormatter(logging.Formatter):
    def __init__(self, *, redact_fields: frozenset[str] = DEFAULT_REDACT_FIELDS) -> None:
        super().__init__(fmt="%(asctime)s %(levelname)-7s %(name)s %(message)s")
        self._redact_fields = redact_fields

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _redact(_record_extras(record), self._redact_fields)
        extras.pop("event", None)
        fields = " ".join(
            f"{key}={value}" for key, value in sorted(extras.items()) if value is not None
        )
        return f"{line} {fields}" if fields else line


def configure_logging(
    *,
    level: str = "INFO",
    log_format: str = "console",
    redact_fields: frozenset[str] = DEFAULT_REDACT_FIELDS,
    include_uvicorn_access: bool = False,
) -> None:
    if log_format == "json":
        formatter: logging.Formatter = JsonLogFormatter(redact_fields=redact_fields)
    else:
        formatter = ConsoleLogFormatter(redact_fields=redact_fields)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in ("uvicorn", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    access_logger = logging.getLogger("uvicorn.access")
    access_logger.handlers.clear()
    access_logger.propagate = include_uvicorn_access
    access_logger.disabled = not include_uvicorn_access
