"""
Structured logging for the dudelang server.

- One "dudelang" logger; JSON lines in production, one-line text otherwise.
- request_id is carried in a ContextVar and stamped on every record.
- Stripe and Groq keys are masked before a record is formatted.
- log_event() emits checkout/entitlement events with a fixed field set.
"""

import json
import logging
import os
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Optional

LOGGER_NAME = "dudelang"

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Record attributes copied into JSON output when set.
_STRUCTURED_FIELDS = (
    "anonymous_id",
    "session_id",
    "event_type",
    "error_code",
    "status",
    "path",
    "method",
    "latency_bucket",
)

_LATENCY_BUCKETS = (
    (10, "<10ms"),
    (100, "10-100ms"),
    (500, "100-500ms"),
    (1000, "500-1000ms"),
)

_SECRET_PATTERN = re.compile(r"\b(sk|rk)_(live|test)_[A-Za-z0-9]+|\bgsk_[A-Za-z0-9]+")


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    rid = request_id_ctx_var.get()
    return default if rid is None else rid


def latency_bucket_ms(latency_ms: Optional[float]) -> str:
    """Coarse latency label for request.complete lines."""
    if latency_ms is None:
        return "unknown"
    for upper, label in _LATENCY_BUCKETS:
        if latency_ms < upper:
            return label
    return ">=1000ms"


def redact(text: str) -> str:
    return _SECRET_PATTERN.sub("[redacted]", text)


def _timestamp(record: logging.LogRecord) -> str:
    stamp = datetime.fromtimestamp(record.created, timezone.utc)
    return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RequestIdFilter(logging.Filter):
    """Stamp request_id from context unless the caller passed one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class StructuredFormatter(logging.Formatter):
    """JSON when as_json, else `<ts> <LEVEL> [dudelang] [rid=..] msg`."""

    def __init__(self, as_json: bool = False):
        super().__init__()
        self.as_json = as_json

    def format(self, record: logging.LogRecord) -> str:
        message = redact(record.getMessage())
        rid = getattr(record, "request_id", None)
        if not self.as_json:
            rid_part = f" [rid={rid}]" if rid else ""
            return f"{_timestamp(record)} {record.levelname} [{LOGGER_NAME}]{rid_part} {message}"

        payload = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
            "request_id": rid,
        }
        payload.update(
            (name, getattr(record, name))
            for name in _STRUCTURED_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            payload["exc_type"] = record.exc_info[0].__name__
        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(env: str = "development") -> None:
    """Install a single stdout handler on the dudelang logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter(as_json=env.lower() == "production"))
    handler.addFilter(RequestIdFilter())

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)
    logger.handlers = [handler]
    logger.propagate = True

    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).propagate = False


def _truncate(value, limit: int = 500) -> str:
    text = redact(value if isinstance(value, str) else repr(value))
    return text if len(text) <= limit else text[:limit] + "...<truncated>"


def log_event(
    level: str,
    msg: str,
    *,
    request_id: Optional[str] = None,
    anonymous_id: Optional[str] = None,
    session_id: Optional[str] = None,
    event_type: Optional[str] = None,
    error_code: Optional[str] = None,
    extra: Optional[Dict[str, object]] = None,
):
    """Log a checkout/entitlement event; extra values are truncated and redacted."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        configure_logging(os.getenv("ENV", "development"))

    fields = {
        "request_id": request_id or get_request_id(),
        "anonymous_id": anonymous_id,
        "session_id": session_id,
        "event_type": event_type,
        "error_code": error_code,
    }
    for key, value in (extra or {}).items():
        fields[key] = _truncate(value)

    logger.log(logging.getLevelName(level.upper()), msg, extra=fields)
