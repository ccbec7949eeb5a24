"""Logging for the admin API.

Every record handled by the ``admin_api`` logger is stamped with the request
context: the request id, the staff member the gate admitted and the source
table of the inbox item being worked on. Production writes one JSON object
per line; development writes one readable line.
"""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict, Optional

from admin_api.config import Settings, get_settings

ROOT_LOGGER = "admin_api"

_configured: Optional[logging.Logger] = None

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
staff_id_var: ContextVar[Optional[str]] = ContextVar("staff_id", default=None)
source_table_var: ContextVar[Optional[str]] = ContextVar("source_table", default=None)

CONTEXT_FIELDS = ("request_id", "staff_id", "source_table")

# Keys a call site may pass through ``extra=``; nothing else reaches the JSON line
RECORD_FIELDS = (
    "lead_id",
    "event_kind",
    "created_by",
    "code",
    "error_type",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
)


class RequestContextFilter(logging.Filter):
    """Copy the request context onto the record unless the call site set it."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field, var in (
            ("request_id", request_id_var),
            ("staff_id", staff_id_var),
            ("source_table", source_table_var),
        ):
            if getattr(record, field, None) is None:
                setattr(record, field, var.get())
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS + RECORD_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """``12:00:01 INFO admin_api.http [req staff table] message``"""

    def __init__(self):
        super().__init__(fmt="%(asctime)s %(levelname)s %(name)s [%(context)s] %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        parts = [str(value) for value in (getattr(record, f, None) for f in CONTEXT_FIELDS) if value]
        record.context = " ".join(parts) or "-"
        return super().format(record)


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure the ``admin_api`` logger once; later calls return it unchanged."""
    global _configured
    if _configured is not None:
        return _configured

    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JSONFormatter() if settings.is_production else ConsoleFormatter())

    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    _configured = logger

    # Access lines come from RequestContextMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.database.echo else logging.WARNING)

    logger.info(f"Logging configured ({settings.log_level}, {'json' if settings.is_production else 'console'})")
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_request_id(request_id: Optional[str]) -> None:
    request_id_var.set(request_id)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def set_staff_id(staff_id: Optional[str]) -> None:
    """Record the staff member admitted for the current request."""
    staff_id_var.set(staff_id)


def set_source_table(source_table: Optional[str]) -> None:
    """Record the source table named by the current request's path."""
    source_table_var.set(source_table)


def log_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    client_ip: Optional[str] = None,
    staff_id: Optional[str] = None,
) -> None:
    """Access line for one request, attributed to the admitted staff member."""
    get_logger("http").info(
        f"{method} {path} {status_code} {duration_ms:.1f}ms",
        extra={
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "client_ip": client_ip,
            "staff_id": staff_id,
        },
    )


def log_error(error: BaseException, **fields: Any) -> None:
    """Log a failure with its traceback; ``fields`` must be ``RECORD_FIELDS`` keys."""
    get_logger("error").error(
        f"{type(error).__name__}: {error}",
        exc_info=error,
        extra={"error_type": type(error).__name__, **fields},
    )


def log_lead_event(lead_id: str, event_kind: str, title: Optional[str] = None, created_by: Optional[str] = None) -> None:
    """Audit line mirroring an event appended to a lead's trail."""
    get_logger("audit").info(
        f"{event_kind} event on lead {lead_id}: {title or '-'}",
        extra={"lead_id": lead_id, "event_kind": event_kind, "created_by": created_by},
    )
