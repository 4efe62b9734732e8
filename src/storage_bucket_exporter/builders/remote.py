"""Builder for storage drivers from remote definitions."""

from __future__ import annotations

from typing import Mapping

from ..constants import BACKEND_B2, BACKEND_LOCAL, S3_COMPATIBLE_TYPES
from ..services.storage.b2 import DEFAULT_REALM, B2Driver
from ..services.storage.base import StorageDriver
from ..services.storage.local import LocalDriver
from ..services.storage.s3 import S3Driver

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


def create_driver_from_section(name: str, section: Mapping[str, str]) -> StorageDriver:
    """Create a storage driver from one remote definition.

    Args:
        name: Remote name (section title)
        section: Key/value options of the remote definition

    Returns:
        Configured storage driver

    Raises:
        ValueError: If the definition is invalid
    """
    remote_type = (section.get("type") or "").strip().lower()
    if not remote_type:
        raise ValueError(f"remote {name!r} has no type")

    if remote_type in S3_COMPATIBLE_TYPES:
        access_key = section.get("access_key_id") or None
        secret_key = section.get("secret_access_key") or None
        if bool(access_key) != bool(secret_key):
            raise ValueError(
                f"remote {name!r} needs both access_key_id and secret_access_key"
            )

        endpoint = section.get("endpoint") or None
        if endpoint and "://" not in endpoint:
            endpoint = f"https://{endpoint}"
        if remote_type != "s3" and not endpoint:
            raise ValueError(f"remote {name!r} of type {remote_type} needs an endpoint")

        return S3Driver(
            endpoint=endpoint,
            region=section.get("region") or None,
            access_key=access_key,
            secret_key=secret_key,
            session_token=section.get("session_token") or None,
            path_style=_as_bool(section.get("force_path_style"), True),
            insecure_skip_verify=_as_bool(section.get("no_check_certificate"), False),
        )

    if remote_type == BACKEND_B2:
        account = section.get("account") or None
        key = section.get("key") or None
        if not account or not key:
            raise ValueError(f"remote {name!r} needs both account and key")
        # An rclone b2 endpoint overrides the B2 API URL, not an S3 endpoint
        return B2Driver(account=account, key=key, realm=section.get("endpoint") or DEFAULT_REALM)

    if remote_type == BACKEND_LOCAL:
        return LocalDriver(root=section.get("root", ""))

    raise ValueError(f"Unsupported remote type: {remote_type}")
