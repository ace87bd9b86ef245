from typing import Any

import pytest

from loggregate.api.scan import make_feed, run_scan
from loggregate.clients.hypersync import HypersyncFeed
from loggregate.clients.rpc import RpcLogFeed
from loggregate.core.config import FeedConfig, ScanConfig
from loggregate.core.models import END_OF_STREAM, LogBatch, ScanState
from loggregate.exceptions import FeedError, SetupError

from conftest import TRANSFER_SIG, TRANSFER_T0, transfer_log


@pytest.mark.asyncio
async def test_run_scan_wires_registry_and_closes_feed(mock_feed, display, diagnostics) -> None:
    seen: dict[str, Any] = {}

    def factory(feed_config: FeedConfig, topic0s: list[str]) -> Any:
        seen["config"] = feed_config
        seen["topic0s"] = topic0s
        return mock_feed

    mock_feed.request_batch.side_effect = [LogBatch(logs=[transfer_log(9)], next_position=1_000), END_OF_STREAM]
    config = ScanConfig(signatures=(TRANSFER_SIG,), parameter="value", contract="0xabc", to_block=2_000)
    result = await run_scan(
        config=config,
        feed_config=FeedConfig(url="http://x"),
        display=display,
        diagnostics=diagnostics,
        feed_factory=factory,
        handle_signals=False,
    )

    assert result.state is ScanState.DONE
    assert result.snapshot.aggregate.sum == 9
    assert seen["topic0s"] == [TRANSFER_T0]
    assert seen["config"].contract == "0xabc"
    assert seen["config"].to_block == 2_000
    mock_feed.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_scan_closes_feed_on_failure(mock_feed, display, diagnostics) -> None:
    mock_feed.request_batch.side_effect = [RuntimeError("RPC error: -32000 boom")]
    with pytest.raises(FeedError):
        await run_scan(
            config=ScanConfig(signatures=(TRANSFER_SIG,), parameter="value"),
            feed_config=FeedConfig(url="http://x"),
            display=display,
            diagnostics=diagnostics,
            feed_factory=lambda cfg, t0s: mock_feed,
            handle_signals=False,
        )
    mock_feed.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_invalid_parameter_fails_before_any_io(mock_feed, display, diagnostics) -> None:
    with pytest.raises(SetupError):
        await run_scan(
            config=ScanConfig(signatures=(TRANSFER_SIG,), parameter="to"),
            feed_config=FeedConfig(url="http://x"),
            display=display,
            diagnostics=diagnostics,
            feed_factory=lambda cfg, t0s: mock_feed,
            handle_signals=False,
        )
    mock_feed.current_height.assert_not_called()


@pytest.mark.asyncio
async def test_make_feed_selects_client() -> None:
    config = FeedConfig(url="http://localhost:8545")
    rpc_feed = make_feed(config, [TRANSFER_T0], use_rpc=True)
    hs_feed = make_feed(config, [TRANSFER_T0])
    assert isinstance(rpc_feed, RpcLogFeed)
    assert isinstance(hs_feed, HypersyncFeed)
    await rpc_feed.aclose()
    await hs_feed.aclose()
