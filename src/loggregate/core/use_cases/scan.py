"""Scan use case: request batch → match → decode → aggregate → throttled publish.

`ScanController` is the only place where the cursor and the aggregate
engine are mutated. It runs as a single cooperative asyncio loop; the only
suspension point is the batch fetch, so no locking is needed.

State machine
-------------
    INIT ──> STREAMING ──> DONE     (END_OF_STREAM or stop requested)
                  │
                  └──────> ERROR    (feed failure, timeout, regressive cursor)

Feed failures are not retried: the controller publishes a final snapshot of
the partial state and raises `FeedError` carrying the last good position and
the partial `ScanResult`. Decode failures and unknown logs never leave the
loop; they only move counters and reach the diagnostics channel.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import NoReturn

from loggregate.core.aggregate import AggregateEngine
from loggregate.core.config import ScanConfig
from loggregate.core.cursor import StreamCursor
from loggregate.core.interfaces import IDiagnostics, IDisplaySink, IEventRegistryProvider, ILogFeed
from loggregate.core.models import (
    DisplaySnapshot,
    EventLog,
    FeedResponse,
    ProgressInfo,
    ScanResult,
    ScanState,
)
from loggregate.core.throttle import UpdateThrottle
from loggregate.decoding.decoder import ParameterDecoder
from loggregate.decoding.matcher import UNKNOWN, EventMatcher
from loggregate.decoding.specs import EventSpec
from loggregate.display.formatting import format_number
from loggregate.exceptions import DecodeFailure, FeedError, FeedTimeout, InvalidCursorAdvance, SetupError

# Lower bound on elapsed time used for throughput, avoids division by ~0.
MIN_ELAPSED_S = 0.1


class ScanController:
    """
    Drives one scan over an `ILogFeed`.

    A controller is single-use: `DONE` and `ERROR` are terminal. A fresh scan
    needs a fresh controller (and therefore a fresh cursor / engine pair).
    """

    def __init__(
        self,
        *,
        config: ScanConfig,
        feed: ILogFeed,
        registry_provider: IEventRegistryProvider,
        display: IDisplaySink,
        diagnostics: IDiagnostics,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._config = config
        self._feed = feed
        self._registry_provider = registry_provider
        self._display = display
        self._diagnostics = diagnostics
        self._clock = clock

        self._state = ScanState.INIT
        self._stop = asyncio.Event()
        self._engine = AggregateEngine(
            decimals=config.decimals,
            display_precision=config.display_precision,
        )
        self._decoder = ParameterDecoder()
        self._matcher: EventMatcher | None = None
        self._cursor: StreamCursor | None = None
        self._throttle: UpdateThrottle | None = None
        self._started_at = 0.0
        self._batches = 0
        self._next_sample = config.sample_every
        self._result: ScanResult | None = None

    # ---- public surface ----

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def cursor(self) -> StreamCursor | None:
        return self._cursor

    @property
    def engine(self) -> AggregateEngine:
        return self._engine

    @property
    def result(self) -> ScanResult | None:
        """Outcome of the scan once it reached DONE or ERROR."""
        return self._result

    def request_stop(self) -> None:
        """Ask the loop to stop; observed between batches and between logs."""
        self._stop.set()

    async def run(self) -> ScanResult:
        """Run the scan to completion.

        Raises
        ------
        SetupError
            Before streaming (empty registry, height query failure, bad range).
        FeedError
            Mid-stream; `error.partial` holds the result accumulated so far.
        """
        if self._state is not ScanState.INIT:
            raise RuntimeError(f"scan already ran (state={self._state.value})")

        await self._init()
        return await self._stream()

    # ---- INIT ----

    async def _init(self) -> None:
        registry = self._registry_provider.get_registry()
        if not registry:
            raise SetupError("event registry is empty")
        self._matcher = EventMatcher(registry)

        try:
            height = await self._feed.current_height()
        except Exception as e:
            raise SetupError(f"chain height query failed: {e}") from e

        upper_bound = height if self._config.to_block is None else min(self._config.to_block, height)
        start = self._config.from_block
        if start > upper_bound:
            raise SetupError(
                "from_block is beyond the scan target",
                {"from_block": start, "upper_bound": upper_bound},
            )

        self._cursor = StreamCursor(start, upper_bound)
        self._throttle = UpdateThrottle(
            snapshot_interval=self._config.snapshot_interval,
            log_interval=self._config.log_interval,
            start=start,
        )
        self._started_at = self._clock()
        self._state = ScanState.STREAMING

        self._display.append_log_line(
            f"Starting scan from block {format_number(start)} to {format_number(upper_bound)}"
        )
        self._display.append_log_line(f"Event decoder initialized ({len(self._matcher)} event(s))")
        self._display.render_progress(self._progress_info())
        self._display.render_snapshot(self._display_snapshot())

    # ---- STREAMING ----

    async def _stream(self) -> ScanResult:
        cursor = self._cursor
        throttle = self._throttle
        assert cursor is not None and throttle is not None

        while not self._stop.is_set():
            try:
                response = await self._fetch(cursor.position)
            except FeedError as e:
                self._fail(e)
            except Exception as e:
                self._fail(
                    FeedError(f"feed error: {type(e).__name__}: {e}", {"position": cursor.position}),
                    cause=e,
                )

            if cursor.is_exhausted(response):
                self._display.append_log_line("✓ Reached the tip of the blockchain!")
                break

            # every batch must move the cursor strictly forward
            try:
                cursor.check_advance(response.next_position)
            except InvalidCursorAdvance as e:
                self._fail(e)

            completed = self._process_logs(response.logs)
            if not completed:
                # stopped mid-batch: the cursor stays at the last complete batch
                break

            cursor.advance(response.next_position)
            self._batches += 1

            self._publish(cursor.position)

        return self._finish()

    async def _fetch(self, position: int) -> FeedResponse:
        timeout = self._config.batch_timeout_s
        try:
            return await asyncio.wait_for(self._feed.request_batch(position), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise FeedTimeout(
                "timed out waiting for the next batch",
                {"position": position, "timeout_s": timeout},
            ) from e

    def _process_logs(self, logs: list[EventLog]) -> bool:
        """Process one batch in feed order. Returns False if a stop was requested mid-batch."""
        matcher = self._matcher
        assert matcher is not None
        engine = self._engine
        sample: tuple[EventSpec, EventLog] | None = None

        for log in logs:
            if self._stop.is_set():
                return False

            spec = matcher.match(log)
            if spec is UNKNOWN:
                engine.observe_unknown()
                self._diagnostics.unknown_log(log)
                continue

            engine.observe_match(spec.name)
            if sample is None:
                sample = (spec, log)
            try:
                value = self._decoder.decode(spec, log)
            except DecodeFailure as e:
                engine.observe_decode_error()
                self._diagnostics.decode_failure(log, e)
                continue
            engine.update(value)

        if sample is not None and engine.count >= self._next_sample:
            self._log_sample(*sample)
            while self._next_sample <= engine.count:
                self._next_sample += self._config.sample_every
        return True

    def _log_sample(self, spec: EventSpec, log: EventLog) -> None:
        try:
            values = self._decoder.decode_all(spec, log)
        except DecodeFailure as e:
            self._display.append_log_line(f"Decode warning: {e}")
            return
        args = ", ".join(f"{k}={v}" for k, v in values.items())
        self._display.append_log_line(f"Sample event at block {format_number(log.block_number)}: {spec.name}({args})")

    def _publish(self, position: int) -> None:
        throttle = self._throttle
        assert throttle is not None
        self._display.render_progress(self._progress_info())
        if throttle.should_snapshot(position):
            self._display.render_snapshot(self._display_snapshot())
        if throttle.should_log(position):
            self._display.append_log_line(self._progress_line())

    # ---- DONE / ERROR ----

    def _finish(self) -> ScanResult:
        cursor = self._cursor
        throttle = self._throttle
        assert cursor is not None and throttle is not None

        cancelled = self._stop.is_set()
        self._state = ScanState.DONE
        snapshot_open, log_open = throttle.force(cursor.position)
        final = self._display_snapshot(final=True)
        self._display.render_progress(self._progress_info())
        if snapshot_open:
            self._display.render_snapshot(final)
        if log_open:
            self._display.append_log_line(self._progress_line())
        if cancelled:
            self._display.append_log_line("Scan stopped by request")
        else:
            self._display.append_log_line("✓ Scan complete!")
        self._display.append_log_line(f"Total processing time: {final.elapsed_s:.2f} seconds")
        self._display.append_log_line(f"Average speed: {format_number(round(final.throughput))} events/second")

        self._result = ScanResult(
            state=self._state,
            snapshot=final,
            last_position=cursor.position,
            cancelled=cancelled,
            batches=self._batches,
        )
        return self._result

    def _fail(self, error: FeedError, cause: BaseException | None = None) -> NoReturn:
        """Transition to ERROR, publish the partial state and raise."""
        cursor = self._cursor
        assert cursor is not None

        self._state = ScanState.ERROR
        final = self._display_snapshot(final=True, failed=True)
        self._display.render_snapshot(final)
        self._display.append_log_line(f"Error: {error}")

        error.last_position = cursor.position
        error.partial = self._result = ScanResult(
            state=self._state,
            snapshot=final,
            last_position=cursor.position,
            error=str(error),
            batches=self._batches,
        )
        self._diagnostics.feed_failure(error)
        if cause is None:
            raise error
        raise error from cause

    # ---- snapshots ----

    def _elapsed(self) -> float:
        return max(self._clock() - self._started_at, MIN_ELAPSED_S)

    def _display_snapshot(self, *, final: bool = False, failed: bool = False) -> DisplaySnapshot:
        cursor = self._cursor
        assert cursor is not None
        elapsed = self._elapsed()
        return DisplaySnapshot(
            cursor_position=cursor.position,
            upper_bound=cursor.upper_bound,
            aggregate=self._engine.snapshot(),
            elapsed_s=elapsed,
            throughput=self._engine.count / elapsed,
            final=final,
            failed=failed,
        )

    def _progress_info(self) -> ProgressInfo:
        cursor = self._cursor
        assert cursor is not None
        elapsed = self._elapsed()
        return ProgressInfo(
            cursor_position=cursor.position,
            upper_bound=cursor.upper_bound,
            total_events=self._engine.count,
            elapsed_s=elapsed,
            throughput=self._engine.count / elapsed,
        )

    def _progress_line(self) -> str:
        cursor = self._cursor
        assert cursor is not None
        elapsed = self._elapsed()
        return (
            f"Block {format_number(cursor.position)} | "
            f"{format_number(self._engine.count)} events | "
            f"{self._engine.count / elapsed:.1f} events/s"
        )
