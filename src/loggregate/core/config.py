from __future__ import annotations

from dataclasses import dataclass

from loggregate.core.throttle import DEFAULT_LOG_INTERVAL, DEFAULT_SNAPSHOT_INTERVAL


@dataclass(frozen=True)
class ScanConfig:
    """Configuration for one scan, built once at setup and passed down."""

    signatures: tuple[str, ...]
    parameter: str | int
    from_block: int = 0
    to_block: int | None = None  # exclusive end; defaults to the chain height at start
    contract: str | None = None
    decimals: int = 0
    display_precision: int = 2
    snapshot_interval: int = DEFAULT_SNAPSHOT_INTERVAL
    log_interval: int = DEFAULT_LOG_INTERVAL
    sample_every: int = 1_000
    batch_timeout_s: float | None = 120.0
    title: str = "Blockchain Event Scanner"


@dataclass(frozen=True)
class FeedConfig:
    """Configuration for a log feed client."""

    url: str
    bearer_token: str | None = None
    contract: str | None = None
    to_block: int | None = None  # exclusive end; defaults to the height at start
    step: int = 5_000  # blocks per eth_getLogs request (RPC feed only)
    timeout_s: int = 20
    max_connections: int = 8
