"""S3 storage driver built on boto3."""

from __future__ import annotations

import logging
import threading
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...utils.deadline import Deadline
from ...utils.errors import ConnectError, CountError, EnumerationError, sanitize_exception
from .base import Handle, ObjectCount, map_backend_error

logger = logging.getLogger(__name__)

# Lower bound for socket timeouts derived from the remaining deadline
MIN_SOCKET_TIMEOUT = 1.0


class S3Driver:
    """S3-compatible object storage driver (AWS, Wasabi, MinIO, ...)."""

    def __init__(
        self,
        endpoint: str | None,
        region: str | None,
        access_key: str | None,
        secret_key: str | None,
        session_token: str | None = None,
        path_style: bool = True,
        insecure_skip_verify: bool = False,
    ) -> None:
        """Initialize S3 driver.

        Args:
            endpoint: S3 endpoint URL, None for AWS defaults
            region: Region name
            access_key: Access key ID, None to use the default credential chain
            secret_key: Secret access key
            session_token: Optional session token for temporary credentials
            path_style: Use path-style addressing
            insecure_skip_verify: Skip TLS verification
        """
        self.endpoint = endpoint
        self.region = region
        self.path_style = path_style
        self.insecure_skip_verify = insecure_skip_verify
        # boto3's default session is shared process-wide and not thread-safe
        self._session = boto3.session.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            aws_session_token=session_token,
            region_name=region,
        )
        self._client_lock = threading.Lock()

    def _make_client(self, deadline: Deadline) -> Any:
        timeout = max(MIN_SOCKET_TIMEOUT, deadline.remaining())
        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if self.path_style else "auto"},
            connect_timeout=timeout,
            read_timeout=timeout,
            retries={"max_attempts": 2, "mode": "standard"},
        )
        # Clients are built per unit of work so timeouts follow its deadline
        with self._client_lock:
            return self._session.client(
                "s3",
                endpoint_url=self.endpoint,
                config=config,
                verify=not self.insecure_skip_verify,
            )

    def open(self, identifier: str, path: str, deadline: Deadline) -> Handle:
        """Create a client and, for a bucket path, verify the bucket is reachable."""
        deadline.check()
        bucket, _, prefix = path.strip("/").partition("/")
        if prefix:
            prefix = prefix.rstrip("/") + "/"

        try:
            client = self._make_client(deadline)
            if bucket:
                client.head_bucket(Bucket=bucket)
        except (ClientError, BotoCoreError, ValueError) as e:
            logger.debug(f"Failed to open {identifier}: {sanitize_exception(e)}")
            raise map_backend_error(ConnectError, e, identifier, deadline) from e

        return Handle(
            identifier=identifier,
            path=path,
            driver=self,
            location={"client": client, "bucket": bucket, "prefix": prefix},
        )

    def list_dirs(self, handle: Handle, deadline: Deadline) -> list[str]:
        """List buckets at the root, or common prefixes one level deep below a bucket."""
        client = handle.location["client"]
        bucket = handle.location["bucket"]
        prefix = handle.location["prefix"]

        try:
            if not bucket:
                deadline.check()
                response = client.list_buckets()
                return [b["Name"] for b in response.get("Buckets", [])]

            dirs: list[str] = []
            paginator = client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix, Delimiter="/"):
                deadline.check()
                for common in page.get("CommonPrefixes", []):
                    name = common["Prefix"][len(prefix):].rstrip("/")
                    if name:
                        dirs.append(name)
            return dirs
        except (ClientError, BotoCoreError) as e:
            raise map_backend_error(EnumerationError, e, handle.identifier, deadline) from e

    def count(self, handle: Handle, deadline: Deadline) -> ObjectCount:
        """Sum object count and sizes below the handle, one page at a time."""
        client = handle.location["client"]
        bucket = handle.location["bucket"]
        prefix = handle.location["prefix"]

        try:
            buckets = [bucket] if bucket else [
                b["Name"] for b in client.list_buckets().get("Buckets", [])
            ]
            count = 0
            total_bytes = 0
            paginator = client.get_paginator("list_objects_v2")
            for name in buckets:
                for page in paginator.paginate(Bucket=name, Prefix=prefix):
                    deadline.check()
                    for obj in page.get("Contents", []):
                        count += 1
                        total_bytes += obj.get("Size", 0)
            return ObjectCount(count, total_bytes)
        except (ClientError, BotoCoreError) as e:
            raise map_backend_error(CountError, e, handle.identifier, deadline) from e
