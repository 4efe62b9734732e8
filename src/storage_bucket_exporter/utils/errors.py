"""Storage error taxonomy and error sanitization utilities."""

from __future__ import annotations

import re


class StorageError(Exception):
    """Base class for failures talking to a storage remote."""

    kind = "storage"

    def __init__(self, message: str, remote: str, container: str | None = None) -> None:
        super().__init__(message)
        self.remote = remote
        self.container = container


class ConnectError(StorageError):
    """A remote or container handle could not be opened."""

    kind = "connect"


class EnumerationError(StorageError):
    """Containers could not be listed under an open remote."""

    kind = "enumerate"


class CountError(StorageError):
    """Objects could not be counted under an open container."""

    kind = "count"


class DeadlineExceeded(StorageError):
    """The unit of work ran out of time or was canceled."""

    kind = "timeout"


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"access[_\s]?key[_\s]?id[:\s=]+([A-Z0-9]{20})",
    r"secret[_\s]?access[_\s]?key[:\s=]+([A-Za-z0-9/+=]{40})",
    r"session[_\s]?token[:\s=]+([A-Za-z0-9/+=]+)",
    r"X-Amz-Credential=([^&\s]+)",
    r"X-Amz-Signature=([^&\s]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "access_key_id",
    "secret_access_key",
    "session_token",
    "password",
    "secret",
    "credentials",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{field}[:\s=]+([^\s,;\)]+)",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))
