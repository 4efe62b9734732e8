"""Base storage interfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple, Protocol

from ...utils.deadline import Deadline
from ...utils.errors import DeadlineExceeded, StorageError, sanitize_exception


class ObjectCount(NamedTuple):
    """Aggregate object count and byte size beneath a handle."""

    count: int
    total_bytes: int


@dataclass
class Handle:
    """An opened remote or container.

    ``identifier`` is the full remote string the handle was opened from,
    ``path`` the part after the remote name. ``location`` holds whatever the
    driver needs to reach it again (client, bucket, prefix, directory).
    """

    identifier: str
    path: str
    driver: StorageDriver
    location: dict[str, Any] = field(default_factory=dict)


class StorageDriver(Protocol):
    """Protocol for a single storage backend type (s3, local, ...)."""

    def open(self, identifier: str, path: str, deadline: Deadline) -> Handle:
        """Resolve ``path`` into a handle, raising ConnectError on failure."""
        ...

    def list_dirs(self, handle: Handle, deadline: Deadline) -> list[str]:
        """List directory names exactly one level below the handle."""
        ...

    def count(self, handle: Handle, deadline: Deadline) -> ObjectCount:
        """Recursively count objects and bytes below the handle."""
        ...


class StorageBackend(Protocol):
    """Protocol the remote counter consumes.

    Every call receives the deadline of the unit of work it belongs to and
    raises DeadlineExceeded once it has passed.
    """

    def open_remote(self, identifier: str, deadline: Deadline) -> Handle:
        """Open a handle for a remote identifier."""
        ...

    def list_top_level_containers(self, handle: Handle, deadline: Deadline) -> list[str]:
        """List top-level containers (directories only, depth 1)."""
        ...

    def count_objects(self, handle: Handle, deadline: Deadline) -> ObjectCount:
        """Count objects and total bytes beneath a handle."""
        ...


def parse_identifier(identifier: str) -> tuple[str | None, str]:
    """Split ``name:path`` into its remote name and path.

    Identifiers without a remote name prefix are plain local paths and yield
    ``(None, identifier)``.

    Args:
        identifier: Remote identifier, e.g. ``"b2:"`` or ``"s3:bucket/dir"``

    Returns:
        Tuple of remote name (or None) and path
    """
    name, sep, path = identifier.partition(":")
    if not sep or not name or "/" in name or "\\" in name:
        return None, identifier
    return name, path


def map_backend_error(
    error_cls: type[StorageError],
    error: Exception,
    identifier: str,
    deadline: Deadline,
) -> StorageError:
    """Translate a backend client error into the storage error taxonomy.

    Transport timeouts surface as ordinary client errors; once the unit's
    deadline is gone they are reported as DeadlineExceeded instead. The
    container is left unset for the counter to fill in.
    """
    if deadline.expired:
        error_cls = DeadlineExceeded
    return error_cls(sanitize_exception(error), deadline.remote or identifier)
