"""Utility functions for the storage bucket exporter."""

from .context import get_context_dict, get_round_id, new_round_id, with_round_id
from .deadline import Deadline
from .errors import (
    ConnectError,
    CountError,
    DeadlineExceeded,
    EnumerationError,
    StorageError,
    sanitize_error_message,
    sanitize_exception,
)

__all__ = [
    "Deadline",
    "StorageError",
    "ConnectError",
    "EnumerationError",
    "CountError",
    "DeadlineExceeded",
    "sanitize_error_message",
    "sanitize_exception",
    "new_round_id",
    "get_round_id",
    "with_round_id",
    "get_context_dict",
]
