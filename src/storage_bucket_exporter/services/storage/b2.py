"""Backblaze B2 storage driver built on the native B2 API."""

from __future__ import annotations

import logging
import threading

from b2sdk.v2 import B2Api, InMemoryAccountInfo
from b2sdk.v2.exception import B2Error

from ...utils.deadline import Deadline
from ...utils.errors import ConnectError, CountError, EnumerationError, sanitize_exception
from .base import Handle, ObjectCount, map_backend_error

logger = logging.getLogger(__name__)

DEFAULT_REALM = "production"


class B2Driver:
    """B2 driver for remotes defined by an account ID and application key."""

    def __init__(self, account: str, key: str, realm: str = DEFAULT_REALM) -> None:
        """Initialize B2 driver.

        Args:
            account: Account ID or application key ID
            key: Application key
            realm: B2 realm name or API URL
        """
        self.account = account
        self.realm = realm
        self._key = key
        self._api: B2Api | None = None
        self._lock = threading.Lock()

    def _authorized_api(self) -> B2Api:
        # Authorize once per driver; every unit of this remote shares the token
        with self._lock:
            if self._api is None:
                api = B2Api(InMemoryAccountInfo())
                api.authorize_account(
                    realm=self.realm,
                    application_key_id=self.account,
                    application_key=self._key,
                )
                self._api = api
            return self._api

    def open(self, identifier: str, path: str, deadline: Deadline) -> Handle:
        """Authorize and, for a bucket path, look the bucket up."""
        deadline.check()
        bucket_name, _, prefix = path.strip("/").partition("/")
        if prefix:
            prefix = prefix.rstrip("/") + "/"

        try:
            api = self._authorized_api()
            bucket = api.get_bucket_by_name(bucket_name) if bucket_name else None
        except B2Error as e:
            logger.debug(f"Failed to open {identifier}: {sanitize_exception(e)}")
            raise map_backend_error(ConnectError, e, identifier, deadline) from e

        return Handle(
            identifier=identifier,
            path=path,
            driver=self,
            location={"api": api, "bucket": bucket, "prefix": prefix},
        )

    def list_dirs(self, handle: Handle, deadline: Deadline) -> list[str]:
        """List buckets at the root, or folders one level deep below a bucket."""
        api = handle.location["api"]
        bucket = handle.location["bucket"]
        prefix = handle.location["prefix"]

        try:
            if bucket is None:
                deadline.check()
                return [b.name for b in api.list_buckets()]

            dirs: list[str] = []
            for _, folder in bucket.ls(prefix, recursive=False):
                deadline.check()
                if folder:
                    name = folder[len(prefix):].rstrip("/")
                    if name:
                        dirs.append(name)
            return dirs
        except B2Error as e:
            raise map_backend_error(EnumerationError, e, handle.identifier, deadline) from e

    def count(self, handle: Handle, deadline: Deadline) -> ObjectCount:
        """Sum the latest file versions and their sizes below the handle."""
        api = handle.location["api"]
        bucket = handle.location["bucket"]
        prefix = handle.location["prefix"]

        try:
            buckets = [bucket] if bucket is not None else api.list_buckets()
            count = 0
            total_bytes = 0
            for b in buckets:
                for file_version, _ in b.ls(prefix, recursive=True):
                    deadline.check()
                    count += 1
                    total_bytes += file_version.size or 0
            return ObjectCount(count, total_bytes)
        except B2Error as e:
            raise map_backend_error(CountError, e, handle.identifier, deadline) from e
