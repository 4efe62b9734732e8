"""Unit tests for remote definitions and the remote registry."""

from __future__ import annotations

import pytest

from storage_bucket_exporter.builders.remote import create_driver_from_section
from storage_bucket_exporter.config import ConfigError
from storage_bucket_exporter.services.storage.b2 import B2Driver
from storage_bucket_exporter.services.storage.base import parse_identifier
from storage_bucket_exporter.services.storage.local import LocalDriver
from storage_bucket_exporter.services.storage.remotes import RemoteRegistry
from storage_bucket_exporter.services.storage.s3 import S3Driver
from storage_bucket_exporter.utils.deadline import Deadline
from storage_bucket_exporter.utils.errors import ConnectError

CONFIG = """\
[wasabi]
type = s3
provider = Wasabi
access_key_id = AKIAEXAMPLE
secret_access_key = secret
endpoint = s3.wasabisys.com
region = us-east-1

[disk]
type = local
root = {root}

[ftp]
type = ftp
host = example.com
"""


class TestParseIdentifier:
    """Test cases for parse_identifier function."""

    @pytest.mark.parametrize(
        ("identifier", "expected"),
        [
            ("b2:", ("b2", "")),
            ("s3:bucket/dir", ("s3", "bucket/dir")),
            ("/srv/data/", (None, "/srv/data/")),
            ("./rel:odd", (None, "./rel:odd")),
        ],
    )
    def test_parse(self, identifier, expected):
        """Test splitting remote names from paths."""
        assert parse_identifier(identifier) == expected


class TestCreateDriverFromSection:
    """Test cases for create_driver_from_section function."""

    def test_s3_remote(self):
        """Test building an S3 driver."""
        driver = create_driver_from_section(
            "wasabi",
            {
                "type": "s3",
                "access_key_id": "AKIAEXAMPLE",
                "secret_access_key": "secret",
                "endpoint": "s3.wasabisys.com",
                "force_path_style": "false",
            },
        )

        assert isinstance(driver, S3Driver)
        assert driver.endpoint == "https://s3.wasabisys.com"
        assert driver.path_style is False

    def test_b2_remote_uses_native_driver(self):
        """Test that a plain rclone b2 section builds a native B2 driver."""
        driver = create_driver_from_section("b2", {"type": "b2", "account": "0001", "key": "K001"})

        assert isinstance(driver, B2Driver)
        assert driver.account == "0001"
        assert driver.realm == "production"

    def test_b2_endpoint_overrides_api_url(self):
        """Test that a b2 endpoint is used as the API URL."""
        driver = create_driver_from_section(
            "b2",
            {"type": "b2", "account": "0001", "key": "K001", "endpoint": "https://api.example.com"},
        )

        assert driver.realm == "https://api.example.com"

    def test_b2_remote_requires_key(self):
        """Test that a b2 remote without a key is rejected."""
        with pytest.raises(ValueError, match="needs both account and key"):
            create_driver_from_section("b2", {"type": "b2", "account": "0001"})

    def test_wasabi_remote_requires_endpoint(self):
        """Test that non-AWS S3 types need an endpoint."""
        with pytest.raises(ValueError, match="needs an endpoint"):
            create_driver_from_section(
                "wasabi",
                {"type": "wasabi", "access_key_id": "a", "secret_access_key": "k"},
            )

    def test_partial_credentials(self):
        """Test that an access key without a secret is rejected."""
        with pytest.raises(ValueError, match="needs both"):
            create_driver_from_section("s3", {"type": "s3", "access_key_id": "AKIA"})

    def test_local_remote(self):
        """Test building a local driver."""
        driver = create_driver_from_section("disk", {"type": "local", "root": "/srv"})

        assert isinstance(driver, LocalDriver)
        assert driver.root == "/srv"

    def test_unsupported_type(self):
        """Test that unknown types are rejected."""
        with pytest.raises(ValueError, match="Unsupported remote type: ftp"):
            create_driver_from_section("ftp", {"type": "ftp"})

    def test_missing_type(self):
        """Test that a definition without a type is rejected."""
        with pytest.raises(ValueError, match="has no type"):
            create_driver_from_section("empty", {})


class TestRemoteRegistry:
    """Test cases for RemoteRegistry."""

    @pytest.fixture
    def remotes(self, tmp_path) -> RemoteRegistry:
        (tmp_path / "data" / "alpha").mkdir(parents=True)
        (tmp_path / "data" / "alpha" / "file.bin").write_bytes(b"x" * 42)
        config = tmp_path / "remotes.conf"
        config.write_text(CONFIG.format(root=tmp_path / "data"))
        return RemoteRegistry.from_config_file(str(config))

    def test_loads_sections(self, remotes):
        """Test that each INI section is a remote."""
        assert set(remotes.definitions) == {"wasabi", "disk", "ftp"}
        assert remotes.definitions["wasabi"]["region"] == "us-east-1"

    def test_malformed_file(self, tmp_path):
        """Test that an unparsable config file raises ConfigError."""
        config = tmp_path / "remotes.conf"
        config.write_text("type = s3\n[b2]\ntype = b2\n")

        with pytest.raises(ConfigError, match="invalid remote config file"):
            RemoteRegistry.from_config_file(str(config))

    def test_missing_file(self, tmp_path):
        """Test that a missing config file yields no named remotes."""
        remotes = RemoteRegistry.from_config_file(str(tmp_path / "absent.conf"))

        assert remotes.definitions == {}

    def test_local_remote_end_to_end(self, remotes):
        """Test enumerating and counting through a named local remote."""
        handle = remotes.open_remote("disk:", Deadline(5))
        containers = remotes.list_top_level_containers(handle, Deadline(5))

        bucket = remotes.open_remote("disk:" + containers[0], Deadline(5))
        result = remotes.count_objects(bucket, Deadline(5))

        assert containers == ["alpha"]
        assert tuple(result) == (1, 42)

    def test_plain_path_uses_local_driver(self, tmp_path):
        """Test that identifiers without a remote name are local paths."""
        (tmp_path / "bucket").mkdir()
        remotes = RemoteRegistry()

        handle = remotes.open_remote(f"{tmp_path}/", Deadline(5))

        assert remotes.list_top_level_containers(handle, Deadline(5)) == ["bucket"]

    def test_unknown_remote(self, remotes):
        """Test that unconfigured remote names raise ConnectError."""
        with pytest.raises(ConnectError, match="not configured"):
            remotes.open_remote("nope:", Deadline(5))

    def test_unsupported_remote(self, remotes):
        """Test that unsupported remote types raise ConnectError."""
        with pytest.raises(ConnectError, match="Unsupported remote type"):
            remotes.open_remote("ftp:", Deadline(5))

    def test_driver_is_cached(self, remotes):
        """Test that each remote's driver is built once."""
        first = remotes.open_remote("disk:", Deadline(5)).driver
        second = remotes.open_remote("disk:alpha", Deadline(5)).driver

        assert first is second
