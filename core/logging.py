"""Structured logging utilities."""
from __future__ import annotations

import logging
import os
import sys
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

import orjson

_TRACE_KEY = "trace_id"
_RESERVED = set(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render log records as JSON, folding ``extra=`` fields into the payload."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode()


def setup_logging(level: Optional[str] = None, log_path: Optional[Path] = None) -> None:
    """Install the JSON formatter on the root logger.

    ``level`` falls back to ``LOG_LEVEL`` then INFO. When ``log_path`` is
    given a rotating file handler is added next to stdout.
    """

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(JsonFormatter())
    root.addHandler(stream)

    if log_path is not None:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)


def with_trace(extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Attach a fresh trace identifier to structured log metadata."""

    payload: Dict[str, Any] = {_TRACE_KEY: str(uuid.uuid4())}
    if extra:
        payload.update(extra)
    return payload


__all__ = ["JsonFormatter", "setup_logging", "with_trace"]
