"""Tests for per-unit deadlines."""

from __future__ import annotations

import pytest

from storage_bucket_exporter.utils.deadline import Deadline
from storage_bucket_exporter.utils.errors import DeadlineExceeded, StorageError


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestDeadline:
    """Test cases for Deadline."""

    def test_remaining_counts_down(self):
        """Test that remaining time follows the clock."""
        clock = FakeClock()
        deadline = Deadline(30, clock=clock)

        assert deadline.remaining() == 30
        clock.now += 10
        assert deadline.remaining() == 20
        assert not deadline.expired

    def test_remaining_never_negative(self):
        """Test that remaining is clamped at zero."""
        clock = FakeClock()
        deadline = Deadline(5, clock=clock)
        clock.now += 60

        assert deadline.remaining() == 0.0
        assert deadline.expired

    def test_check_passes_before_expiry(self):
        """Test that check does nothing while time remains."""
        deadline = Deadline(5, remote="a:", clock=FakeClock())
        deadline.check()

    def test_check_raises_after_expiry(self):
        """Test that check raises DeadlineExceeded after expiry."""
        clock = FakeClock()
        deadline = Deadline(5, remote="a:", clock=clock)
        clock.now += 5

        with pytest.raises(DeadlineExceeded) as exc_info:
            deadline.check("x")

        assert exc_info.value.remote == "a:"
        assert exc_info.value.container == "x"
        assert exc_info.value.kind == "timeout"

    def test_cancel(self):
        """Test that a canceled deadline behaves as expired."""
        deadline = Deadline(60, remote="a:", clock=FakeClock())
        deadline.cancel()

        assert deadline.cancelled
        assert deadline.expired
        assert deadline.remaining() == 0.0
        with pytest.raises(DeadlineExceeded, match="canceled"):
            deadline.check()

    def test_wait_returns_true_when_cancelled(self):
        """Test that wait reports cancellation."""
        deadline = Deadline(60)
        deadline.cancel()

        assert deadline.wait(1) is True

    def test_wait_returns_false_on_timeout(self):
        """Test that wait returns False when nothing canceled it."""
        deadline = Deadline(60)

        assert deadline.wait(0.01) is False

    def test_deadline_exceeded_is_storage_error(self):
        """Test that deadline errors share the storage error base class."""
        assert issubclass(DeadlineExceeded, StorageError)

    def test_deadlines_are_independent(self):
        """Test that canceling one deadline leaves others untouched."""
        first = Deadline(60)
        second = Deadline(60)
        first.cancel()

        assert first.cancelled
        assert not second.cancelled
        second.check()
