"""Constants for the storage bucket exporter."""

import os

# Published bucket metrics
METRIC_BUCKET_SIZE_BYTES = "storage_bucket_size_bytes"
METRIC_BUCKET_FILE_COUNT = "storage_bucket_file_count"
BUCKET_LABELS = ("remote", "bucket")

# Self metrics
METRIC_POLL_ROUNDS = "storage_exporter_poll_rounds_total"
METRIC_POLL_ROUND_DURATION = "storage_exporter_poll_round_duration_seconds"
METRIC_REMOTE_ERRORS = "storage_exporter_remote_errors_total"
METRIC_LAST_SUCCESS = "storage_exporter_last_success_timestamp_seconds"

# Defaults
DEFAULT_UPDATE_PERIOD_MINUTES = 60
DEFAULT_REMOTE_TIMEOUT_SECONDS = 30
DEFAULT_LISTEN_ADDRESS = ":8080"
DEFAULT_REMOTES_CONFIG = os.path.join("~", ".config", "rclone", "rclone.conf")

# Environment variables
ENV_REMOTES = "STORAGE_EXPORTER_REMOTES"
ENV_UPDATE_PERIOD = "STORAGE_EXPORTER_UPDATE_PERIOD"
ENV_REMOTE_TIMEOUT = "STORAGE_EXPORTER_REMOTE_TIMEOUT"
ENV_LISTEN = "STORAGE_EXPORTER_LISTEN"
ENV_CONFIG = "STORAGE_EXPORTER_CONFIG"
ENV_LOG_LEVEL = "LOG_LEVEL"

# Remote definition types
BACKEND_B2 = "b2"
BACKEND_LOCAL = "local"
S3_COMPATIBLE_TYPES = ("s3", "wasabi")
