"""Poll scheduler: runs measurement rounds across all remotes."""

from __future__ import annotations

import contextvars
import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Sequence

from .constants import METRIC_BUCKET_FILE_COUNT, METRIC_BUCKET_SIZE_BYTES, METRIC_LAST_SUCCESS
from .counter import Measurement, RemoteCounter, RemoteResult
from .logging import log_bucket_event
from .metrics import MetricsRegistry
from .tracing import trace_span
from .utils.context import new_round_id, with_round_id
from .utils.deadline import Deadline
from .utils.errors import DeadlineExceeded, StorageError, sanitize_exception

logger = logging.getLogger(__name__)

STATE_IDLE = "idle"
STATE_POLLING = "polling"
STATE_STOPPED = "stopped"


@dataclass
class RoundResult:
    """Outcome of one poll round over every configured remote."""

    round_id: str
    started_at: float
    duration: float = 0.0
    results: dict[str, RemoteResult] = field(default_factory=dict)

    @property
    def measurements(self) -> list[Measurement]:
        return [m for r in self.results.values() for m in r.measurements]

    @property
    def failed_remotes(self) -> list[str]:
        """Remotes that produced at least one error this round."""
        return [name for name, r in self.results.items() if r.errors]


class _Unit:
    """One remote's work within a round, run on its own thread."""

    def __init__(self, remote: str, deadline: Deadline) -> None:
        self.remote = remote
        self.deadline = deadline
        self.result: RemoteResult | None = None
        self.abandoned = False
        self.lock = threading.Lock()
        self.thread: threading.Thread

    def complete(self, result: RemoteResult) -> None:
        with self.lock:
            if not self.abandoned:
                self.result = result

    def abandon(self) -> RemoteResult:
        """Stop accepting output from this unit and record it as timed out."""
        with self.lock:
            if self.result is not None:
                return self.result
            self.abandoned = True
            self.deadline.cancel()
            self.result = RemoteResult(
                remote=self.remote,
                errors=[
                    DeadlineExceeded(
                        f"abandoned after {self.deadline.timeout:g}s", self.remote
                    )
                ],
                duration=self.deadline.timeout,
            )
            return self.result


class PollScheduler:
    """Runs a poll round immediately and then once per interval.

    Each round starts one thread per remote, each bound to its own deadline,
    and waits until every unit has returned or hit its deadline. A unit that
    overruns is abandoned: its deadline is canceled and anything it produces
    afterwards is discarded. Measurements are written to the registry as they
    are taken, so a slow bucket does not hold back its siblings.
    """

    def __init__(
        self,
        remotes: Sequence[str],
        counter: RemoteCounter,
        registry: MetricsRegistry,
        interval: float,
        timeout: float,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self.remotes = list(remotes)
        self.counter = counter
        self.registry = registry
        self.interval = interval
        self.timeout = timeout
        self._clock = clock
        self._wall_clock = wall_clock

        self.state = STATE_IDLE
        self.rounds_completed = 0
        self.last_round: RoundResult | None = None

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._inflight: list[_Unit] = []
        self._lock = threading.Lock()
        self._round_done = threading.Condition(self._lock)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background loop. The first round runs immediately."""
        if self.running:
            raise RuntimeError("scheduler already running")
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="poll-scheduler", daemon=True)
        self._thread.start()
        logger.info(
            f"Polling {len(self.remotes)} remotes every {self.interval:g}s "
            f"with a {self.timeout:g}s timeout per remote"
        )

    def stop(self, timeout: float | None = None) -> None:
        """Stop arming new rounds and cancel units still in flight."""
        self._stop.set()
        with self._lock:
            inflight = list(self._inflight)
        for unit in inflight:
            unit.deadline.cancel()
        if self._thread is not None:
            self._thread.join(timeout)
        self.state = STATE_STOPPED
        logger.info("Poll scheduler stopped")

    def wait_for_rounds(self, count: int, timeout: float | None = None) -> bool:
        """Block until at least ``count`` rounds have completed."""
        with self._round_done:
            return self._round_done.wait_for(lambda: self.rounds_completed >= count, timeout)

    def _loop(self) -> None:
        next_run = self._clock()
        while not self._stop.is_set():
            try:
                self.run_round()
            except Exception as e:
                logger.error(f"Poll round failed: {sanitize_exception(e)}")

            # Fixed-rate ticks; ticks missed by a long round are skipped
            next_run += self.interval
            now = self._clock()
            if next_run < now:
                next_run += math.ceil((now - next_run) / self.interval) * self.interval
            if self._stop.wait(next_run - now):
                break

    def run_round(self) -> RoundResult:
        """Run one round over all remotes and wait for every unit to finish or expire."""
        self.state = STATE_POLLING
        round_result = RoundResult(round_id=new_round_id(), started_at=self._wall_clock())
        started = self._clock()

        with with_round_id(round_result.round_id), trace_span(
            "poll_round", attributes={"storage.remotes": len(self.remotes)}
        ):
            units = [self._launch(remote) for remote in self.remotes]
            with self._lock:
                self._inflight = units

            for unit in units:
                unit.thread.join(unit.deadline.remaining())
                if unit.thread.is_alive():
                    unit.abandon()
                    logger.warning(f"Abandoned remote {unit.remote} after {self.timeout:g}s")

            with self._lock:
                self._inflight = []

            for unit in units:
                result = unit.result if unit.result is not None else unit.abandon()
                round_result.results[unit.remote] = result

            round_result.duration = self._clock() - started
            self._record_round(round_result)

        with self._round_done:
            self.rounds_completed += 1
            self.last_round = round_result
            if not self._stop.is_set():
                self.state = STATE_IDLE
            self._round_done.notify_all()

        return round_result

    def _launch(self, remote: str) -> _Unit:
        unit = _Unit(remote, Deadline(self.timeout, remote=remote, clock=self._clock))
        ctx = contextvars.copy_context()
        unit.thread = threading.Thread(
            target=ctx.run,
            args=(self._run_unit, unit),
            name=f"poll-{remote}",
            daemon=True,
        )
        unit.thread.start()
        return unit

    def _run_unit(self, unit: _Unit) -> None:
        try:
            result = self.counter.count(
                unit.remote,
                unit.deadline,
                on_measurement=lambda m: self._publish(unit, m),
            )
        except Exception as e:
            logger.error(f"Unexpected error polling remote {unit.remote}: {sanitize_exception(e)}")
            result = RemoteResult(
                remote=unit.remote,
                errors=[StorageError(sanitize_exception(e), unit.remote)],
            )
        unit.complete(result)

    def _publish(self, unit: _Unit, measurement: Measurement) -> None:
        labels = (measurement.remote, measurement.container)
        with unit.lock:
            if unit.abandoned:
                return
            self.registry.set_gauge(METRIC_BUCKET_FILE_COUNT, labels, measurement.object_count)
            self.registry.set_gauge(METRIC_BUCKET_SIZE_BYTES, labels, measurement.total_bytes)

    def _record_round(self, round_result: RoundResult) -> None:
        registry = self.registry
        registry.poll_rounds_total.inc()
        registry.poll_round_duration_seconds.observe(round_result.duration)

        for remote, result in round_result.results.items():
            for error in result.errors:
                registry.remote_errors_total.labels(remote=remote, kind=error.kind).inc()
            if result.enumerated and not result.timed_out:
                registry.set_gauge(METRIC_LAST_SUCCESS, (remote,), self._wall_clock())

        failed = round_result.failed_remotes
        log_bucket_event(
            logger,
            ",".join(self.remotes),
            None,
            "RoundCompleted",
            f"Poll round finished in {round_result.duration:.2f}s",
            buckets=len(round_result.measurements),
            failed_remotes=failed,
        )
