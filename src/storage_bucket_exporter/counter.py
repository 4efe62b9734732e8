"""Per-remote bucket enumeration and counting."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from .logging import log_bucket_event
from .services.storage.base import StorageBackend
from .tracing import set_span_status, trace_span
from .utils.deadline import Deadline
from .utils.errors import (
    ConnectError,
    CountError,
    DeadlineExceeded,
    EnumerationError,
    StorageError,
    sanitize_exception,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Measurement:
    """Object count and byte size of one bucket, observed at ``observed_at``."""

    remote: str
    container: str
    object_count: int
    total_bytes: int
    observed_at: float


@dataclass
class RemoteResult:
    """Outcome of counting one remote in one round."""

    remote: str
    measurements: list[Measurement] = field(default_factory=list)
    errors: list[StorageError] = field(default_factory=list)
    containers: list[str] = field(default_factory=list)
    enumerated: bool = False
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        """True if the remote was enumerated and every bucket was counted."""
        return self.enumerated and not self.errors

    @property
    def timed_out(self) -> bool:
        return any(isinstance(e, DeadlineExceeded) for e in self.errors)


MeasurementCallback = Callable[[Measurement], None]


def _wrap(
    error: Exception,
    error_cls: type[StorageError],
    deadline: Deadline,
    remote: str,
    container: str | None = None,
) -> StorageError:
    """Map collaborator errors into the storage error taxonomy."""
    if isinstance(error, StorageError):
        if error.container is None and container is not None:
            error.container = container
        return error
    if deadline.cancelled or deadline.expired:
        error_cls = DeadlineExceeded
    return error_cls(sanitize_exception(error), remote, container)


class RemoteCounter:
    """Enumerates the buckets of a remote and counts each one.

    A failure to open or list the remote aborts the remote for the round. A
    failure on one bucket is logged and skipped; its siblings are still
    counted. Once the deadline passes no further buckets are attempted.
    """

    def __init__(self, backend: StorageBackend, clock: Callable[[], float] = time.time) -> None:
        self.backend = backend
        self._clock = clock

    def count(
        self,
        remote: str,
        deadline: Deadline,
        on_measurement: MeasurementCallback | None = None,
    ) -> RemoteResult:
        """Measure every top-level bucket of ``remote`` before ``deadline``.

        Args:
            remote: Remote identifier, e.g. ``"b2:"``
            deadline: Deadline shared by all calls for this remote
            on_measurement: Called with each Measurement as soon as it is taken

        Returns:
            RemoteResult with one Measurement per successfully counted bucket
        """
        started = time.monotonic()
        result = RemoteResult(remote=remote)
        if not deadline.remote:
            deadline.remote = remote

        with trace_span("count_remote", attributes={"storage.remote": remote}):
            try:
                self._count(remote, deadline, result, on_measurement)
            finally:
                result.duration = time.monotonic() - started
            set_span_status(result.ok, "; ".join(str(e) for e in result.errors) or None)

        return result

    def _count(
        self,
        remote: str,
        deadline: Deadline,
        result: RemoteResult,
        on_measurement: MeasurementCallback | None,
    ) -> None:
        try:
            deadline.check()
            handle = self.backend.open_remote(remote, deadline)
        except Exception as e:
            self._record(result, _wrap(e, ConnectError, deadline, remote))
            return

        try:
            deadline.check()
            containers = self.backend.list_top_level_containers(handle, deadline)
        except Exception as e:
            self._record(result, _wrap(e, EnumerationError, deadline, remote))
            return

        result.enumerated = True
        result.containers = list(containers)
        logger.debug(f"Remote {remote} has {len(containers)} buckets")

        for name in containers:
            container_remote = remote + name
            try:
                deadline.check(name)
            except DeadlineExceeded as e:
                self._record(result, e)
                return

            try:
                container_handle = self.backend.open_remote(container_remote, deadline)
            except Exception as e:
                error = _wrap(e, ConnectError, deadline, remote, name)
                self._record(result, error)
                if isinstance(error, DeadlineExceeded):
                    return
                continue

            try:
                count, total_bytes = self.backend.count_objects(container_handle, deadline)
            except Exception as e:
                error = _wrap(e, CountError, deadline, remote, name)
                self._record(result, error)
                if isinstance(error, DeadlineExceeded):
                    return
                continue

            measurement = Measurement(
                remote=remote,
                container=name,
                object_count=int(count),
                total_bytes=int(total_bytes),
                observed_at=self._clock(),
            )
            result.measurements.append(measurement)
            log_bucket_event(
                logger,
                remote,
                name,
                "BucketCounted",
                f"Updated bucket {container_remote}",
                size_bytes=measurement.total_bytes,
                file_count=measurement.object_count,
            )
            if on_measurement is not None:
                on_measurement(measurement)

    def _record(self, result: RemoteResult, error: StorageError) -> None:
        result.errors.append(error)
        log_bucket_event(
            logger,
            result.remote,
            error.container,
            type(error).__name__,
            sanitize_exception(error),
            level=logging.WARNING if isinstance(error, DeadlineExceeded) else logging.ERROR,
            kind=error.kind,
        )
