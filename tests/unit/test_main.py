"""Tests for the command line entry point."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from storage_bucket_exporter import main as main_module


@pytest.fixture(autouse=True)
def quiet():
    """Keep main() from reconfiguring logging or installing signal handlers."""
    with patch.object(main_module.structured_logging, "setup_structured_logging"), \
            patch.object(main_module.signal, "signal") as mock_signal, \
            patch.object(main_module, "initialize_tracing"):
        yield mock_signal


def test_missing_remote_exits_with_error(capsys):
    """Test that running without a remote fails with usage."""
    with patch.dict("os.environ", {}, clear=True):
        assert main_module.main([]) == 1

    assert "usage: storage-bucket-exporter" in capsys.readouterr().err


def test_invalid_listen_exits_with_error():
    """Test that an unparsable listen address fails."""
    assert main_module.main(["--remote", "a:", "--listen", "nope"]) == 1


def test_bind_failure_exits_with_error():
    """Test that an HTTP server startup failure exits non-zero."""
    with patch.object(main_module, "ExporterService") as mock_service:
        mock_service.return_value.serve_forever.side_effect = OSError("address in use")

        assert main_module.main(["--remote", "a:"]) == 1


def test_clean_shutdown(quiet):
    """Test that a normal shutdown exits zero and installs signal handlers."""
    with patch.object(main_module, "ExporterService") as mock_service:
        assert main_module.main(["--remote", "a:", "--update-period", "1"]) == 0

    config = mock_service.call_args.args[0]
    assert config.remotes == ["a:"]
    assert config.update_period_seconds == 60
    mock_service.return_value.serve_forever.assert_called_once()
    signals = {c.args[0] for c in quiet.call_args_list}
    assert signals == {main_module.signal.SIGINT, main_module.signal.SIGTERM}


def test_signal_requests_shutdown(quiet):
    """Test that the installed handler asks the service to stop."""
    with patch.object(main_module, "ExporterService") as mock_service:
        main_module.main(["--remote", "a:"])

    handler = quiet.call_args_list[0].args[1]
    handler(main_module.signal.SIGTERM, None)

    mock_service.return_value.request_shutdown.assert_called_once()


def test_malformed_environment_exits_with_error(caplog):
    """Test that a non-numeric environment default exits with status 1."""
    env = {"STORAGE_EXPORTER_REMOTES": "a:", "STORAGE_EXPORTER_UPDATE_PERIOD": "hourly"}
    with patch.dict("os.environ", env, clear=True), \
            patch.object(main_module, "ExporterService") as mock_service:
        assert main_module.main([]) == 1

    mock_service.assert_not_called()
    assert any(
        r.levelname == "CRITICAL" and "STORAGE_EXPORTER_UPDATE_PERIOD" in r.getMessage()
        for r in caplog.records
    )


def test_malformed_remote_config_exits_with_error(tmp_path, caplog):
    """Test that an unparsable remote config file exits with status 1."""
    config = tmp_path / "remotes.conf"
    config.write_text("type = s3\n")

    assert main_module.main(["--remote", "a:", "--config", str(config)]) == 1

    assert any(
        r.levelname == "CRITICAL" and "invalid remote config file" in r.getMessage()
        for r in caplog.records
    )
