"""
Logging for the Lattice API and pipeline.

Records go to stdout (container logs) and, when LOGTAIL_SOURCE_TOKEN is set and
logtail-python is installed, to Logtail. Dict messages are structured events:
JSON for Logtail, key=value pairs on the console.
"""
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

try:
    from logtail import LogtailHandler
    LOGTAIL_AVAILABLE = True
except ImportError:
    LOGTAIL_AVAILABLE = False
    LogtailHandler = None

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"


class StructuredFormatter(logging.Formatter):
    """Renders dict messages as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        if not isinstance(record.msg, dict):
            return super().format(record)
        fields = dict(record.msg)
        data = {
            "message": fields.pop("message", fields.get("event", "")),
            "level": record.levelname,
            "module": record.module,
            "timestamp": self.formatTime(record, self.datefmt),
        }
        data.update(fields)
        return json.dumps(data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console lines; dict messages become ``key=value`` pairs."""

    def __init__(self):
        super().__init__(fmt=CONSOLE_FORMAT, datefmt=CONSOLE_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, dict):
            pairs = " ".join(f"{key}={value}" for key, value in record.msg.items())
            record = logging.makeLogRecord({**record.__dict__, "msg": pairs, "args": None})
        return super().format(record)


_loggers: Dict[str, logging.Logger] = {}


def _logtail_handler(logger: logging.Logger) -> Optional[logging.Handler]:
    token = os.getenv("LOGTAIL_SOURCE_TOKEN")
    if not token:
        return None
    if not LOGTAIL_AVAILABLE:
        logger.debug("LOGTAIL_SOURCE_TOKEN is set but logtail-python is not installed")
        return None
    try:
        handler = LogtailHandler(
            source_token=token,
            host=os.getenv("LOGTAIL_INGEST_HOST", "in.logtail.com"),
        )
    except Exception as e:
        logger.warning(f"Logtail handler unavailable, console only: {e}")
        return None
    handler.setFormatter(StructuredFormatter())
    return handler


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger (cached by name).

    The level comes from LOG_LEVEL (default INFO).
    """
    cached = _loggers.get(name)
    if cached is not None:
        return cached

    logger = logging.getLogger(name)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    if not logger.handlers:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(ConsoleFormatter())
        logger.addHandler(console)
        remote = _logtail_handler(logger)
        if remote is not None:
            logger.addHandler(remote)

    _loggers[name] = logger
    return logger


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: Any) -> None:
    """Emit a structured record; fields with None values are dropped."""
    payload: Dict[str, Any] = {"event": event}
    payload.update({k: v for k, v in fields.items() if v is not None})
    logger.log(level, payload)
