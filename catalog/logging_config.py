# catalog/logging_config.py

"""
Logging setup for the catalog service.

Standard library logging throughout. The console format is the one the
service has always used; the JSON format is meant for log shippers and
carries the extra attributes (``method``, ``uri``, ...) as top-level keys.

Usage:
    from catalog.logging_config import configure_logging

    configure_logging(level="INFO", json_logs=False)
    logging.getLogger(__name__).info("message", extra={"uri": "/v1/api/products"})
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict

CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# Attributes every LogRecord has; anything else came in through ``extra``.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure the root logger and quieten uvicorn's access log."""
    formatter_name = "json" if json_logs else "console"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"format": CONSOLE_FORMAT},
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": formatter_name,
                },
            },
            "root": {"handlers": ["default"], "level": level.upper()},
            "loggers": {
                "uvicorn.access": {"level": "WARNING"},
                "uvicorn.error": {"level": "INFO"},
            },
        }
    )
