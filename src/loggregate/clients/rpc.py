"""Lightweight JSON-RPC client for Ethereum-compatible nodes.

This module provides:
- `RPC`: an async client with sane timeouts/connection limits
- `RpcLogFeed`: an `ILogFeed` that pages `eth_getLogs` by block step
- Helper utilities to format block numbers and topics

Positions are block numbers; the feed's height is an exclusive end
(`latest + 1`), matching the HyperSync feed.
"""

from __future__ import annotations

from collections.abc import Sequence

import httpx

from loggregate.core.config import FeedConfig
from loggregate.core.models import END_OF_STREAM, EventLog, FeedResponse, LogBatch


def to_hex_block(x: int) -> str:
    """Return a 0x-prefixed hex block number."""
    return hex(x)


def topics_param(topic0s: Sequence[str]) -> list[list[str]]:
    """Format topic0 signatures for eth_getLogs RPC call."""
    return [[t.lower() for t in topic0s]]


class RPC:
    """Minimal async RPC client.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    transport : httpx.AsyncBaseTransport | None
        Optional transport override (tests use `httpx.MockTransport`).
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_s: int = 20,
        max_connections: int = 8,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            http2=transport is None,
            transport=transport,
        )

    async def _call(self, method: str, params: list) -> object:
        r = await self.client.post(
            self.url,
            json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params},
        )
        r.raise_for_status()
        data = r.json()
        if "error" in data:
            e = data["error"]
            raise RuntimeError(f"RPC error: {e.get('code')} {e.get('message')}")
        return data.get("result")

    async def latest_block(self) -> int:
        """Return the latest block number as an int."""
        return int(await self._call("eth_blockNumber", []), 16)

    async def get_logs(
        self,
        *,
        address: str | None,
        topic0s: Sequence[str],
        from_block: int,
        to_block: int,
    ) -> list[EventLog]:
        """Fetch logs for an optional address and a set of topic0 signatures within a block range."""
        flt: dict[str, object] = {
            "fromBlock": to_hex_block(from_block),
            "toBlock": to_hex_block(to_block),
            "topics": topics_param(topic0s),
        }
        if address:
            flt["address"] = address.lower()
        result = await self._call("eth_getLogs", [flt])

        out: list[EventLog] = []
        for rl in result or []:
            topics = tuple((t if isinstance(t, str) else t.decode()).lower() for t in rl.get("topics", []))
            out.append(
                EventLog(
                    topics=topics,
                    data_hex=str(rl.get("data") or "0x"),
                    block_number=int(rl["blockNumber"], 16),
                    tx_hash=(rl.get("transactionHash") or "").lower(),
                    log_index=int(rl["logIndex"], 16),
                    address=(rl.get("address") or "").lower(),
                )
            )
        out.sort(key=lambda ev: (ev.block_number, ev.log_index))
        return out

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()


class RpcLogFeed:
    """Paginated `eth_getLogs` feed over `[position, position + step)` windows."""

    def __init__(
        self,
        config: FeedConfig,
        topic0s: Sequence[str],
        *,
        rpc: RPC | None = None,
    ) -> None:
        if config.step <= 0:
            raise ValueError("step must be positive")
        self._config = config
        self._topic0s = list(topic0s)
        self._rpc = rpc or RPC(config.url, timeout_s=config.timeout_s, max_connections=config.max_connections)
        self._stop: int | None = config.to_block

    async def current_height(self) -> int:
        height = await self._rpc.latest_block() + 1
        if self._stop is None or self._stop > height:
            self._stop = height
        return height

    async def request_batch(self, position: int) -> FeedResponse:
        if self._stop is None:
            raise RuntimeError("current_height() must be called before request_batch()")
        if position >= self._stop:
            return END_OF_STREAM
        end = min(position + self._config.step, self._stop)
        logs = await self._rpc.get_logs(
            address=self._config.contract,
            topic0s=self._topic0s,
            from_block=position,
            to_block=end - 1,
        )
        return LogBatch(logs=logs, next_position=end)

    async def aclose(self) -> None:
        await self._rpc.aclose()
