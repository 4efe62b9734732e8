"""Shared fixtures for unit tests."""

from __future__ import annotations

import threading
from typing import Any

import pytest

from storage_bucket_exporter.metrics import MetricsRegistry
from storage_bucket_exporter.services.storage.base import Handle, ObjectCount
from storage_bucket_exporter.utils.deadline import Deadline
from storage_bucket_exporter.utils.errors import ConnectError


class FakeBackend:
    """In-memory storage backend.

    ``remotes`` maps a remote identifier to its buckets; each bucket maps to a
    ``(count, total_bytes)`` tuple or to an exception raised when counting.
    """

    def __init__(self) -> None:
        self.remotes: dict[str, dict[str, Any]] = {}
        self.open_errors: dict[str, Exception] = {}
        self.list_errors: dict[str, Exception] = {}
        self.hang_on_open: set[str] = set()
        self.honor_cancel = False
        self.release = threading.Event()
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def set_remote(self, remote: str, buckets: dict[str, Any]) -> None:
        self.remotes[remote] = dict(buckets)

    def _lookup(self, identifier: str) -> tuple[str, str | None] | None:
        if identifier in self.remotes:
            return identifier, None
        for remote, buckets in self.remotes.items():
            if identifier.startswith(remote) and identifier[len(remote):] in buckets:
                return remote, identifier[len(remote):]
        return None

    def open_remote(self, identifier: str, deadline: Deadline) -> Handle:
        with self._lock:
            self.calls.append(("open", identifier))
        if identifier in self.hang_on_open:
            if self.honor_cancel:
                while not deadline.expired and not self.release.is_set():
                    deadline.wait(0.01)
                deadline.check()
            else:
                self.release.wait(30)
        if identifier in self.open_errors:
            raise self.open_errors[identifier]
        found = self._lookup(identifier)
        if found is None:
            raise ConnectError(f"remote {identifier!r} is not configured", identifier)
        remote, bucket = found
        return Handle(
            identifier=identifier,
            path=bucket or "",
            driver=self,  # type: ignore[arg-type]
            location={"remote": remote, "bucket": bucket},
        )

    def list_top_level_containers(self, handle: Handle, deadline: Deadline) -> list[str]:
        with self._lock:
            self.calls.append(("list", handle.identifier))
        if handle.identifier in self.list_errors:
            raise self.list_errors[handle.identifier]
        return list(self.remotes[handle.location["remote"]])

    def count_objects(self, handle: Handle, deadline: Deadline) -> ObjectCount:
        with self._lock:
            self.calls.append(("count", handle.identifier))
        value = self.remotes[handle.location["remote"]][handle.location["bucket"]]
        if isinstance(value, Exception):
            raise value
        return ObjectCount(*value)


@pytest.fixture
def fake_backend() -> Any:
    """Create an empty fake storage backend."""
    backend = FakeBackend()
    yield backend
    # Let any thread still blocked in a simulated hang finish
    backend.release.set()


@pytest.fixture
def registry() -> MetricsRegistry:
    """Create a fresh metrics registry."""
    return MetricsRegistry()
