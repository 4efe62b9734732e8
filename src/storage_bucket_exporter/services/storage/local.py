"""Local filesystem storage driver."""

from __future__ import annotations

import os

from ...utils.deadline import Deadline
from ...utils.errors import ConnectError, CountError, EnumerationError
from .base import Handle, ObjectCount


class LocalDriver:
    """Treats subdirectories of a local directory as buckets."""

    def __init__(self, root: str = "") -> None:
        self.root = root

    def _resolve(self, path: str) -> str:
        if self.root and not os.path.isabs(path):
            path = os.path.join(self.root, path)
        return os.path.expanduser(path or ".")

    def open(self, identifier: str, path: str, deadline: Deadline) -> Handle:
        deadline.check()
        directory = self._resolve(path)
        if not os.path.isdir(directory):
            raise ConnectError(f"directory not found: {directory}", deadline.remote or identifier)
        return Handle(identifier=identifier, path=path, driver=self, location={"directory": directory})

    def list_dirs(self, handle: Handle, deadline: Deadline) -> list[str]:
        deadline.check()
        try:
            with os.scandir(handle.location["directory"]) as entries:
                return sorted(e.name for e in entries if e.is_dir(follow_symlinks=False))
        except OSError as e:
            raise EnumerationError(str(e), deadline.remote or handle.identifier) from e

    def count(self, handle: Handle, deadline: Deadline) -> ObjectCount:
        """Walk the directory tree summing regular file sizes."""

        def _raise(error: OSError) -> None:
            raise error

        count = 0
        total_bytes = 0
        try:
            for dirpath, _, filenames in os.walk(handle.location["directory"], onerror=_raise):
                deadline.check()
                for filename in filenames:
                    st = os.lstat(os.path.join(dirpath, filename))
                    count += 1
                    total_bytes += st.st_size
        except OSError as e:
            raise CountError(str(e), deadline.remote or handle.identifier) from e
        return ObjectCount(count, total_bytes)
