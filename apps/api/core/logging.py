"""
Logging setup shared by the API process and the Celery worker.

Each line is tagged with the emitting process ("api" or "worker") so the two
streams can be merged. Extra context goes in ``extra={"extra_fields": {...}}``.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.config import settings

TEXT_FORMAT = "%(asctime)s [%(service)s] %(name)s %(levelname)s: %(message)s"

# Third-party loggers capped at WARNING unless LOG_LEVEL is DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "urllib3", "multipart", "webauthn", "kombu")


class ServiceFilter(logging.Filter):
    """Stamps every record with the process role."""

    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": getattr(record, "service", None),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        fields: Optional[Dict[str, Any]] = getattr(record, "extra_fields", None)
        if fields:
            entry.update(fields)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        # Dates, Decimals and ids from the ORM are not JSON-native
        return json.dumps(entry, default=str)


def _use_json() -> bool:
    return settings.LOG_FORMAT == "json" or settings.ENVIRONMENT == "production"


def setup_logging(service: str = "api") -> logging.Logger:
    """Install one stdout handler on the root logger. Safe to call again."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(ServiceFilter(service))
    handler.setFormatter(JSONFormatter() if _use_json() else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    if level > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return root
