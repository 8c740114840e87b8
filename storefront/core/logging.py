import json
import logging
import sys
from datetime import datetime, timezone

from storefront.api.middleware.request_id import current_request_id

# Payment and customer fields never reach the log output verbatim
_SENSITIVE_KEYS = {
    "password", "secret", "token", "api_key", "authorization",
    "signature", "phone", "email",
}
_DEFAULT_LOG_RECORD_KEYS = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__)

_NOISY_LOGGERS = (
    "uvicorn.access",
    "sqlalchemy.engine",
    "httpx",
    "httpcore",
    "redis",
    "aiosmtplib",
)


def _sanitize_value(data: dict) -> dict:
    sanitized = {}
    for key, value in data.items():
        if any(s in key.lower() for s in _SENSITIVE_KEYS):
            sanitized[key] = "********"
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_value(value)
        else:
            sanitized[key] = value
    return sanitized


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = current_request_id()
        if request_id:
            log_entry["request_id"] = request_id
        if record.levelno >= logging.ERROR:
            log_entry["location"] = f"{record.module}:{record.lineno}"
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {
            k: v for k, v in record.__dict__.items()
            if k not in _DEFAULT_LOG_RECORD_KEYS and k not in ("message", "asctime")
        }
        if extra:
            log_entry["extra"] = _sanitize_value(extra)
        return json.dumps(log_entry, default=str)


def setup_logging(debug: bool = False) -> None:
    """Route every logger through a single JSON handler on stdout."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
