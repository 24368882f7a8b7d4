"""
Structured JSON logging for the student records service.

Every log line is one JSON object on stdout with a channel (http, db, files,
auth), the current request ID and any business context attached by the
caller (idno, user id, filename).
"""

import logging
import json
import sys
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

# Set by the request middleware, read by the formatter.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

CHANNELS = ("http", "db", "files", "auth")


class StructuredJsonFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": getattr(record, "channel", record.name.rsplit(".", 1)[-1]),
            "context": {
                "request_id": request_id_var.get(""),
                **(getattr(record, "context", {}) or {})
            },
            "extra": getattr(record, "extra_data", {}) or {}
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Install the JSON formatter on the `records` logger tree.

    Only the service's own loggers are reconfigured; uvicorn and the test
    runner keep their handlers.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())

    root_logger = logging.getLogger("records")
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = [handler]

    for channel in CHANNELS:
        logging.getLogger(f"records.{channel}").setLevel(logging.NOTSET)

    return root_logger


def get_logger(channel: str) -> logging.Logger:
    return logging.getLogger(f"records.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None,
                     exc_info: bool = False):
    """
    Emit a structured log entry.

    Args:
        logger: Channel logger from `get_logger`
        level: Level name (DEBUG, INFO, WARNING, ERROR)
        message: Human-readable message
        context: Business identifiers (idno, user_id, filename)
        extra_data: Measurements and other metadata (duration_ms, size)
        exc_info: Attach the active exception's traceback
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        exc_info=exc_info,
        extra={"context": context or {}, "extra_data": extra_data or {},
               "channel": logger.name.rsplit(".", 1)[-1]}
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())
