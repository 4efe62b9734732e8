"""Command line and environment configuration."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field
from typing import Sequence

from .constants import (
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_REMOTE_TIMEOUT_SECONDS,
    DEFAULT_REMOTES_CONFIG,
    DEFAULT_UPDATE_PERIOD_MINUTES,
    ENV_CONFIG,
    ENV_LISTEN,
    ENV_LOG_LEVEL,
    ENV_REMOTE_TIMEOUT,
    ENV_REMOTES,
    ENV_UPDATE_PERIOD,
)


class ConfigError(ValueError):
    """Raised when the exporter configuration is invalid."""


@dataclass
class ExporterConfig:
    """Settings for one exporter process."""

    remotes: list[str] = field(default_factory=list)
    update_period_minutes: float = DEFAULT_UPDATE_PERIOD_MINUTES
    remote_timeout_seconds: float = DEFAULT_REMOTE_TIMEOUT_SECONDS
    listen: str = DEFAULT_LISTEN_ADDRESS
    remotes_config: str = DEFAULT_REMOTES_CONFIG
    log_level: str = "INFO"

    @property
    def update_period_seconds(self) -> float:
        return self.update_period_minutes * 60

    @property
    def listen_host(self) -> str:
        return parse_listen_address(self.listen)[0]

    @property
    def listen_port(self) -> int:
        return parse_listen_address(self.listen)[1]

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ConfigError: If a setting is missing or out of range
        """
        if not self.remotes:
            raise ConfigError("at least one remote must be configured with --remote")
        if self.update_period_minutes <= 0:
            raise ConfigError("--update-period must be positive")
        if self.remote_timeout_seconds <= 0:
            raise ConfigError("--remote-timeout must be positive")
        parse_listen_address(self.listen)


def split_remotes(value: str | None) -> list[str]:
    """Split a comma separated remote list, dropping blanks and duplicates."""
    remotes: list[str] = []
    for remote in (value or "").split(","):
        remote = remote.strip()
        if remote and remote not in remotes:
            remotes.append(remote)
    return remotes


def parse_listen_address(listen: str) -> tuple[str, int]:
    """Parse ``host:port`` (``:port`` binds all interfaces).

    Raises:
        ConfigError: If the address has no valid port
    """
    host, sep, port = listen.rpartition(":")
    if not sep:
        raise ConfigError(f"invalid listen address {listen!r}, expected host:port")
    try:
        port_number = int(port)
    except ValueError as e:
        raise ConfigError(f"invalid port in listen address {listen!r}") from e
    if not 0 <= port_number <= 65535:
        raise ConfigError(f"port out of range in listen address {listen!r}")
    return host.strip("[]"), port_number


def _env_float(name: str, default: float) -> float:
    """Read a numeric setting from the environment.

    Raises:
        ConfigError: If the variable is set but not a number
    """
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigError(f"invalid {name}={value!r}, expected a number") from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Defaults come from the environment.

    Raises:
        ConfigError: If a numeric environment default is malformed
    """
    parser = argparse.ArgumentParser(
        prog="storage-bucket-exporter",
        description="Export object storage bucket sizes and file counts as Prometheus metrics.",
    )
    parser.add_argument(
        "--remote",
        default=os.getenv(ENV_REMOTES, ""),
        help="Comma separated list of remotes to monitor (REQUIRED)",
    )
    parser.add_argument(
        "--update-period",
        type=float,
        default=_env_float(ENV_UPDATE_PERIOD, DEFAULT_UPDATE_PERIOD_MINUTES),
        help="Update period in minutes (default: %(default)s)",
    )
    parser.add_argument(
        "--remote-timeout",
        type=float,
        default=_env_float(ENV_REMOTE_TIMEOUT, DEFAULT_REMOTE_TIMEOUT_SECONDS),
        help="Timeout in seconds for calls to the remotes (default: %(default)s)",
    )
    parser.add_argument(
        "--listen",
        default=os.getenv(ENV_LISTEN, DEFAULT_LISTEN_ADDRESS),
        help="Address to listen on for serving metrics (default: %(default)s)",
    )
    parser.add_argument(
        "--config",
        default=os.getenv(ENV_CONFIG, DEFAULT_REMOTES_CONFIG),
        help="Remote definitions file (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv(ENV_LOG_LEVEL, "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Log level (default: %(default)s)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ExporterConfig:
    return ExporterConfig(
        remotes=split_remotes(args.remote),
        update_period_minutes=args.update_period,
        remote_timeout_seconds=args.remote_timeout,
        listen=args.listen,
        remotes_config=args.config,
        log_level=args.log_level,
    )


def parse_args(argv: Sequence[str] | None = None) -> ExporterConfig:
    """Parse command line arguments into an unvalidated ExporterConfig."""
    return config_from_args(build_parser().parse_args(argv))
