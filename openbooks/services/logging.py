"""
Structured logging for OpenBooks.

Everything logs under the "openbooks" logger. With USE_JSON_LOGS=true each
record is one JSON object carrying the event fields; otherwise a plain
one-line format is used.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger("openbooks")

_PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, merged with the record's event fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(getattr(record, "event", {}))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """(Re)install the package handler. Defaults come from LOG_LEVEL / USE_JSON_LOGS."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_logs is None:
        json_logs = os.getenv("USE_JSON_LOGS", "false").lower() == "true"

    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    logger.propagate = False


configure_logging()


def _log_event(level: int, message: str, event: Dict[str, Any], exc_info: Optional[BaseException] = None) -> None:
    logger.log(level, message, extra={"event": event}, exc_info=exc_info)


def log_request(method: str, path: str, status_code: int, duration_ms: float, client_id: Optional[str] = None):
    event = {
        "type": "http_request",
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
    }
    if client_id:
        event["client_id"] = client_id
    _log_event(logging.INFO, f"{method} {path} {status_code}", event)


def log_mutation(operation: str, outcome: str, resource_id: Optional[str] = None, **fields):
    """
    Record what happened to a write against the backend.

    outcome is "success", "rejected" (backend said no or was unreachable) or
    "blocked" (refused locally, no request made). Only success logs at INFO.
    """
    event = {"type": "mutation", "operation": operation, "outcome": outcome}
    if resource_id:
        event["resource_id"] = resource_id
    event.update(fields)
    level = logging.INFO if outcome == "success" else logging.WARNING
    _log_event(level, f"{operation} {outcome}", event)


def log_error(error_type: str, message: str, context: Optional[Dict[str, Any]] = None, exception: Optional[Exception] = None):
    event = {"type": "error", "error_type": error_type}
    event.update(context or {})
    _log_event(logging.ERROR, message, event, exc_info=exception)
