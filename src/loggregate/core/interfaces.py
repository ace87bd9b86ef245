from __future__ import annotations

from typing import Protocol, runtime_checkable

from loggregate.core.models import DisplaySnapshot, EventLog, FeedResponse, ProgressInfo
from loggregate.decoding.specs import EventRegistry
from loggregate.exceptions import DecodeFailure, FeedError


# ---------------------------------------------------------------------------
# ILogFeed
# ---------------------------------------------------------------------------

@runtime_checkable
class ILogFeed(Protocol):
    """
    Paginated source of event logs.

    Domain expectations:
    - `next_position` is monotone across batches.
    - Exhaustion is signalled with `END_OF_STREAM`, not with an empty batch.
    - Transport errors propagate as exceptions; the scan does not retry.
    """

    async def current_height(self) -> int:
        """
        Return the chain height. Called exactly once, before streaming.
        """
        ...

    async def request_batch(self, position: int) -> FeedResponse:
        """
        Return the logs starting at `position` and the position to request next,
        or `END_OF_STREAM`.

        Implementations:
        - HyperSync HTTP query API (`HypersyncFeed`)
        - JSON-RPC `eth_getLogs` paging (`RpcLogFeed`)
        - In-memory feed for testing
        """
        ...

    async def aclose(self) -> None:
        ...


# ---------------------------------------------------------------------------
# IEventRegistryProvider
# ---------------------------------------------------------------------------

@runtime_checkable
class IEventRegistryProvider(Protocol):
    """
    Provider of the topic0 -> EventSpec table, built once at setup.
    """

    def get_registry(self) -> EventRegistry:
        ...


# ---------------------------------------------------------------------------
# IDisplaySink
# ---------------------------------------------------------------------------

@runtime_checkable
class IDisplaySink(Protocol):
    """
    Receives value objects only; must not retain references into engine state.
    Called at irregular, throttled intervals and once more at stream end.
    """

    def render_snapshot(self, snapshot: DisplaySnapshot) -> None:
        ...

    def append_log_line(self, text: str) -> None:
        ...

    def render_progress(self, progress: ProgressInfo) -> None:
        ...


# ---------------------------------------------------------------------------
# IDiagnostics
# ---------------------------------------------------------------------------

@runtime_checkable
class IDiagnostics(Protocol):
    """
    Error and diagnostics channel. Non-fatal notices must not interrupt the scan.
    """

    def unknown_log(self, log: EventLog) -> None:
        ...

    def decode_failure(self, log: EventLog, error: DecodeFailure) -> None:
        ...

    def feed_failure(self, error: FeedError) -> None:
        ...
