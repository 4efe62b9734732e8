"""Remote registry: resolves remote identifiers to storage drivers."""

from __future__ import annotations

import configparser
import logging
import os
import threading
from typing import Mapping

from ...builders.remote import create_driver_from_section
from ...config import ConfigError
from ...utils.deadline import Deadline
from ...utils.errors import ConnectError
from .base import Handle, ObjectCount, StorageDriver, parse_identifier
from .local import LocalDriver

logger = logging.getLogger(__name__)


class RemoteRegistry:
    """Storage backend that dispatches on the remote name of an identifier.

    Remote definitions are INI sections keyed by remote name, as written by
    rclone. Identifiers without a remote name are local paths.
    """

    def __init__(self, definitions: Mapping[str, Mapping[str, str]] | None = None) -> None:
        self.definitions = {name: dict(opts) for name, opts in (definitions or {}).items()}
        self._drivers: dict[str, StorageDriver] = {}
        self._lock = threading.Lock()
        self._local = LocalDriver()

    @classmethod
    def from_config_file(cls, path: str) -> RemoteRegistry:
        """Load remote definitions from an INI file. A missing file yields no remotes.

        Raises:
            ConfigError: If the file cannot be parsed
        """
        path = os.path.expanduser(path)
        parser = configparser.ConfigParser(interpolation=None)
        try:
            found = parser.read(path)
        except configparser.Error as e:
            raise ConfigError(f"invalid remote config file {path}: {e}") from e
        if not found:
            logger.warning(f"Remote config file {path} not found, no named remotes defined")
        definitions = {section: dict(parser[section]) for section in parser.sections()}
        return cls(definitions)

    def _driver_for(self, name: str | None, identifier: str) -> StorageDriver:
        if name is None:
            return self._local

        with self._lock:
            driver = self._drivers.get(name)
            if driver is not None:
                return driver

            section = self.definitions.get(name)
            if section is None:
                raise ConnectError(f"remote {name!r} is not configured", identifier)
            try:
                driver = create_driver_from_section(name, section)
            except ValueError as e:
                raise ConnectError(str(e), identifier) from e
            self._drivers[name] = driver
            return driver

    def open_remote(self, identifier: str, deadline: Deadline) -> Handle:
        name, path = parse_identifier(identifier)
        driver = self._driver_for(name, identifier)
        return driver.open(identifier, path, deadline)

    def list_top_level_containers(self, handle: Handle, deadline: Deadline) -> list[str]:
        return handle.driver.list_dirs(handle, deadline)

    def count_objects(self, handle: Handle, deadline: Deadline) -> ObjectCount:
        return handle.driver.count(handle, deadline)
