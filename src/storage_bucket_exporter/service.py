"""Exporter service: wires the registry, scheduler and HTTP endpoint together."""

from __future__ import annotations

import logging
import threading

from werkzeug.serving import BaseWSGIServer, make_server

from .config import ExporterConfig
from .counter import RemoteCounter
from .health import create_metrics_wsgi_app
from .metrics import MetricsRegistry
from .scheduler import PollScheduler
from .services.storage.base import StorageBackend
from .services.storage.remotes import RemoteRegistry

logger = logging.getLogger(__name__)


class ExporterService:
    """Owns the process-wide registry, scheduler and metrics server.

    All three are created once and live until ``stop()``; nothing is rebuilt
    per request or per round.
    """

    def __init__(
        self,
        config: ExporterConfig,
        backend: StorageBackend | None = None,
        registry: MetricsRegistry | None = None,
    ) -> None:
        self.config = config
        self.registry = registry or MetricsRegistry()
        self.backend = backend or RemoteRegistry.from_config_file(config.remotes_config)
        self.counter = RemoteCounter(self.backend)
        self.scheduler = PollScheduler(
            config.remotes,
            self.counter,
            self.registry,
            interval=config.update_period_seconds,
            timeout=config.remote_timeout_seconds,
        )
        self.app = create_metrics_wsgi_app(self.registry, is_ready=self.is_ready)

        self._server: BaseWSGIServer | None = None
        self._server_thread: threading.Thread | None = None
        self._shutdown = threading.Event()

    def is_ready(self) -> bool:
        return self.scheduler.rounds_completed > 0

    @property
    def server_port(self) -> int | None:
        return self._server.server_port if self._server is not None else None

    def start(self) -> None:
        """Bind the metrics server, then start polling.

        Raises:
            OSError: If the listen address cannot be bound
        """
        host, port = self.config.listen_host, self.config.listen_port
        try:
            self._server = make_server(host, port, self.app, threaded=True)
        except SystemExit as e:
            # werkzeug prints the bind error and exits instead of raising
            raise OSError(f"cannot listen on {host or '0.0.0.0'}:{port}") from e
        self._server_thread = threading.Thread(
            target=self._server.serve_forever, name="metrics-server", daemon=True
        )
        self._server_thread.start()
        logger.info(f"Serving Prometheus metrics on {host or '0.0.0.0'}:{self.server_port}/metrics")

        self.scheduler.start()

    def request_shutdown(self) -> None:
        """Ask ``serve_forever`` to return; safe to call from a signal handler."""
        self._shutdown.set()

    def serve_forever(self) -> None:
        """Start the service and block until shutdown is requested."""
        self.start()
        try:
            self._shutdown.wait()
        finally:
            self.stop()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop polling and shut the metrics server down."""
        self._shutdown.set()
        self.scheduler.stop(timeout)
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._server_thread is not None:
            self._server_thread.join(timeout)
            self._server_thread = None
        logger.info("Exporter stopped")
