"""Main entry point for the storage bucket exporter."""

from __future__ import annotations

import logging
import os
import signal
import sys
from typing import Any, Sequence

from . import logging as structured_logging
from .config import ConfigError, build_parser, config_from_args
from .constants import ENV_LOG_LEVEL
from .service import ExporterService
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the exporter until SIGINT or SIGTERM.

    Returns:
        Process exit status
    """
    try:
        parser = build_parser()
    except ConfigError as e:
        structured_logging.setup_structured_logging(os.getenv(ENV_LOG_LEVEL, "INFO"))
        logger.critical(f"FATAL: {e}")
        return 1
    config = config_from_args(parser.parse_args(argv))

    structured_logging.setup_structured_logging(config.log_level)

    try:
        config.validate()
    except ConfigError as e:
        logger.critical(f"FATAL: {e}")
        parser.print_usage(sys.stderr)
        return 1

    initialize_tracing()

    try:
        service = ExporterService(config)
    except ConfigError as e:
        logger.critical(f"FATAL: {e}")
        return 1

    def _handle_signal(signum: int, _frame: Any) -> None:
        logger.info(f"Received signal {signal.Signals(signum).name}, shutting down")
        service.request_shutdown()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        service.serve_forever()
    except OSError as e:
        logger.critical(f"FATAL: error starting HTTP server on {config.listen}: {e}")
        return 1

    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())
