"""Storage drivers consumed by the remote counter.

``RemoteRegistry`` lives in ``.remotes`` and is imported from there, since it
depends on the driver builders.
"""

from .b2 import B2Driver
from .base import Handle, ObjectCount, StorageBackend, StorageDriver, parse_identifier
from .local import LocalDriver
from .s3 import S3Driver

__all__ = [
    "Handle",
    "ObjectCount",
    "StorageBackend",
    "StorageDriver",
    "parse_identifier",
    "B2Driver",
    "LocalDriver",
    "S3Driver",
]
