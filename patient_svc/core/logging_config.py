"""
Logging setup for Patient Service API.

Output is one JSON object per line:

    {"ts": "2025-01-01T10:00:00.123Z", "level": "INFO", "logger": "services.history_service",
     "msg": "History entry appended", "request_id": "4f1c2a9b7e01", "patient_id": "8f14e45f", ...}

Fields passed through ``extra={...}`` are merged at the top level. Patient
identity (name, date of birth) must never reach a log sink, so those keys are
masked wherever they turn up in ``extra``.

Environment Variables:
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    LOG_FORMAT: "json" or "text" (default: json)
"""
import json
import logging
import logging.config
import os
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

APP_LOGGERS = ("core", "api", "services", "repositories", "clients", "main")

# Keys identifying a person; logged as a mask
IDENTITY_FIELDS = frozenset({"name", "patient_name", "dob", "date_of_birth"})
MASK = "***"

# Every attribute a bare LogRecord carries, plus the ones formatting adds
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "request_id"}


def bind_request_id(request_id: str) -> Token:
    """Bind a request id to the current context; pass the token to reset_request_id()."""
    return _request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _request_id.reset(token)


def current_request_id() -> Optional[str]:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Stamp records with the bound request id unless the caller passed one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = current_request_id()
        return True


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON line with identity fields masked."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "ts": created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{created.microsecond // 1000:03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if getattr(record, "request_id", None):
            payload["request_id"] = record.request_id

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            payload[key] = MASK if key in IDENTITY_FIELDS else value

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_format: bool = True) -> None:
    """
    Configure the root logger, the application loggers and uvicorn's loggers.

    LOG_LEVEL and LOG_FORMAT in the environment take precedence over the
    arguments.
    """
    level = os.environ.get("LOG_LEVEL", level).upper()
    use_json = os.environ.get("LOG_FORMAT", "json" if json_format else "text").lower() == "json"

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": RequestIdFilter}},
        "formatters": {
            "json": {"()": JSONFormatter},
            "text": {
                "format": "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "filters": ["request_id"],
                "formatter": "json" if use_json else "text",
            },
        },
        "root": {"level": level, "handlers": ["stdout"]},
        "loggers": {
            **{name: {"level": level} for name in APP_LOGGERS},
            # uvicorn installs its own handlers; route everything through ours
            **{name: {"handlers": [], "propagate": True} for name in ("uvicorn", "uvicorn.error", "uvicorn.access")},
        },
    })

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"level": level, "format": "json" if use_json else "text"}
    )
