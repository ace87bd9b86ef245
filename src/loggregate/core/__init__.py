"""Core data models, configuration and the scan engine.

This package provides:
- Data models (EventLog, LogBatch, AggregateSnapshot, DisplaySnapshot)
- Configuration classes (ScanConfig, FeedConfig)
- Streaming primitives (StreamCursor, UpdateThrottle, AggregateEngine)
"""

from loggregate.core.aggregate import AggregateEngine
from loggregate.core.config import FeedConfig, ScanConfig
from loggregate.core.cursor import StreamCursor
from loggregate.core.models import (
    END_OF_STREAM,
    AggregateSnapshot,
    DisplaySnapshot,
    EventLog,
    LogBatch,
    ProgressInfo,
    ScanResult,
    ScanState,
)
from loggregate.core.throttle import UpdateThrottle

__all__ = [
    "AggregateEngine",
    "FeedConfig",
    "ScanConfig",
    "StreamCursor",
    "END_OF_STREAM",
    "AggregateSnapshot",
    "DisplaySnapshot",
    "EventLog",
    "LogBatch",
    "ProgressInfo",
    "ScanResult",
    "ScanState",
    "UpdateThrottle",
]
