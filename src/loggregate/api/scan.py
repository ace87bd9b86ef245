"""Application layer: wire concrete feed / registry / sinks into a scan.

`run_scan(...)`:
- builds the topic0 registry from the configured signatures (SetupError on
  invalid signatures or parameter)
- instantiates the feed (HyperSync by default, JSON-RPC on request)
- runs `ScanController` and closes the feed afterwards
- installs SIGINT / SIGTERM handlers that request a cooperative stop
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable
from dataclasses import replace

from loggregate.clients.hypersync import HypersyncFeed
from loggregate.clients.rpc import RpcLogFeed
from loggregate.core.config import FeedConfig, ScanConfig
from loggregate.core.interfaces import IDiagnostics, IDisplaySink, ILogFeed
from loggregate.core.models import ScanResult
from loggregate.core.use_cases.scan import ScanController
from loggregate.decoding.registry import EventRegistryProvider
from loggregate.decoding.registry_builder import make_registry
from loggregate.decoding.specs import EventRegistry, get_event_registry_topic0s

logger = logging.getLogger(__name__)

FeedFactory = Callable[[FeedConfig, list[str]], ILogFeed]


def build_registry(config: ScanConfig) -> EventRegistry:
    """Parse signatures and bind the tracked parameter. Raises SetupError."""
    return make_registry(config.signatures, config.parameter)


def make_feed(feed_config: FeedConfig, topic0s: list[str], *, use_rpc: bool = False) -> ILogFeed:
    if use_rpc:
        return RpcLogFeed(feed_config, topic0s)
    return HypersyncFeed(feed_config, topic0s)


def _install_signal_handlers(controller: ScanController) -> list[signal.Signals]:
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, controller.request_stop)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # e.g. Windows event loops or non-main threads
            continue
    return installed


async def run_scan(
    *,
    config: ScanConfig,
    feed_config: FeedConfig,
    display: IDisplaySink,
    diagnostics: IDiagnostics,
    use_rpc: bool = False,
    feed_factory: FeedFactory | None = None,
    handle_signals: bool = True,
) -> ScanResult:
    """Run one scan end to end.

    Raises SetupError before streaming and FeedError mid-stream; the feed is
    closed in every case.
    """
    registry = build_registry(config)
    topic0s = get_event_registry_topic0s(registry)
    feed_config = replace(feed_config, contract=config.contract, to_block=config.to_block)

    feed = feed_factory(feed_config, topic0s) if feed_factory else make_feed(feed_config, topic0s, use_rpc=use_rpc)
    controller = ScanController(
        config=config,
        feed=feed,
        registry_provider=EventRegistryProvider(registry),
        display=display,
        diagnostics=diagnostics,
    )

    installed: list[signal.Signals] = []
    if handle_signals:
        installed = _install_signal_handlers(controller)
    try:
        return await controller.run()
    finally:
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)
        await feed.aclose()
        logger.debug("scan finished in state %s", controller.state.value)
