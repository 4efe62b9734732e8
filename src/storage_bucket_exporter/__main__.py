"""Allow running the exporter with ``python -m storage_bucket_exporter``."""

from .main import run

run()
