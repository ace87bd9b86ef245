from __future__ import annotations

__version__ = "0.1.0"

from .core.config import FeedConfig, ScanConfig
from .core.models import AggregateSnapshot, DisplaySnapshot, EventLog, LogBatch, ScanResult, ScanState
from .core.use_cases.scan import ScanController
from .decoding.registry import EventRegistryProvider
from .decoding.registry_builder import make_registry
from .exceptions import DecodeFailure, FeedError, FeedTimeout, LoggregateError, SetupError

__all__ = [
    "__version__",
    "make_registry",
    "EventRegistryProvider",
    "ScanController",
    "ScanConfig",
    "FeedConfig",
    "EventLog",
    "LogBatch",
    "AggregateSnapshot",
    "DisplaySnapshot",
    "ScanResult",
    "ScanState",
    "LoggregateError",
    "SetupError",
    "DecodeFailure",
    "FeedError",
    "FeedTimeout",
]
