"""Storage bucket exporter.

Periodically measures the object count and byte size of every top-level
bucket on a set of storage remotes and serves them as Prometheus gauges.
"""

from .counter import Measurement, RemoteCounter, RemoteResult
from .metrics import MetricsRegistry
from .scheduler import PollScheduler, RoundResult
from .service import ExporterService

__version__ = "0.1.0"
__all__ = [
    "Measurement",
    "RemoteCounter",
    "RemoteResult",
    "MetricsRegistry",
    "PollScheduler",
    "RoundResult",
    "ExporterService",
]
