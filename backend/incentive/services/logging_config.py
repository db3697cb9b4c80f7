"""Structured logging configuration for the production incentive service."""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Extra attributes copied into the JSON payload when present on the record
_EXTRA_FIELDS = (
    "entry_id",
    "emp_code",
    "building_id",
    "nature_id",
    "duration_ms",
    "request_id",
    "http_method",
    "http_path",
    "http_status",
)


class JSONFormatter(logging.Formatter):
    """JSON structured log formatter for production."""
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        for name in _EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        return json.dumps(log_entry, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that stamps a fixed set of context fields (e.g. entry_id)
    on every record while still honouring per-call ``extra``.
    """

    def process(self, msg: Any, kwargs: Dict[str, Any]):
        merged = dict(self.extra or {})
        merged.update(kwargs.get("extra") or {})
        kwargs["extra"] = merged
        return msg, kwargs


def bind_logger(name: str, **context: Any) -> ContextAdapter:
    """Return a logger for ``name`` that carries ``context`` on every line."""
    return ContextAdapter(logging.getLogger(name), context)


def setup_logging(level: str = "INFO", json_output: bool = True):
    """Configure application logging."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
        ))

    root.handlers = [handler]

    for name in ["uvicorn.access", "httpcore", "httpx", "sqlalchemy.engine"]:
        logging.getLogger(name).setLevel(logging.WARNING)
