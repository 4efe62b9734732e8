"""Structured logging configuration for the storage bucket exporter."""

import json
import logging
import sys
from typing import Any

from .utils.context import get_context_dict

LOG_FORMAT = "%(message)s"


def setup_structured_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # botocore logs every retry and credential lookup at INFO
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def log_bucket_event(
    logger: logging.Logger,
    remote: str,
    bucket: str | None,
    event: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured event about a remote or one of its buckets."""
    log_data = get_context_dict(
        {
            "remote": remote,
            "bucket": bucket,
            "event": event,
            "message": message,
        }
    )
    log_data.update(kwargs)
    logger.log(level, json.dumps(sanitize_secrets(log_data), default=str))


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Remove secret fields from log data."""
    secret_fields = {"access_key_id", "secret_access_key", "session_token", "password"}
    sanitized = log_data.copy()
    for field in secret_fields:
        if field in sanitized:
            sanitized[field] = "***REDACTED***"
    return sanitized
