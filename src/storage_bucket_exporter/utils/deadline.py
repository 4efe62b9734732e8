"""Per-unit deadlines with cooperative cancellation."""

from __future__ import annotations

import threading
import time
from typing import Callable

from .errors import DeadlineExceeded


class Deadline:
    """A point in time after which a unit of work must stop.

    Storage calls receive the deadline explicitly. They use ``remaining()`` to
    size socket timeouts and call ``check()`` between pages or directories.
    ``cancel()`` ends the deadline early, e.g. on shutdown or when the
    scheduler abandons the unit.
    """

    def __init__(
        self,
        timeout: float,
        remote: str = "",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout
        self.remote = remote
        self._clock = clock
        self._expires_at = clock() + timeout
        self._cancelled = threading.Event()

    def remaining(self) -> float:
        """Seconds left before expiry, never negative."""
        if self._cancelled.is_set():
            return 0.0
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def wait(self, seconds: float | None = None) -> bool:
        """Sleep up to ``seconds`` (or until expiry). Returns True if canceled."""
        limit = self.remaining() if seconds is None else min(seconds, self.remaining())
        return self._cancelled.wait(limit)

    def check(self, container: str | None = None) -> None:
        """Raise DeadlineExceeded if the deadline has passed or was canceled."""
        if self._cancelled.is_set():
            raise DeadlineExceeded(
                f"canceled after {self.timeout:g}s budget", self.remote, container
            )
        if self.expired:
            raise DeadlineExceeded(
                f"deadline of {self.timeout:g}s exceeded", self.remote, container
            )
