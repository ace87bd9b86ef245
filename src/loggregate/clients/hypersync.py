"""HyperSync HTTP client.

This module provides:
- `HypersyncFeed`: an `ILogFeed` over the HyperSync JSON query API

Endpoints used:
- `GET  {url}/height` → `{"height": N}` (latest block, scanned up to N + 1 exclusive)
- `POST {url}/query`  → `{"data": [{"logs": [...]}, ...], "next_block": N, "archive_height": H}`

The scan target is the height observed by `current_height()` (or an
explicit `to_block`); once the cursor reaches it the feed returns
`END_OF_STREAM`. Transport errors propagate, there is no retry.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from loggregate.core.config import FeedConfig
from loggregate.core.models import END_OF_STREAM, EventLog, FeedResponse, LogBatch

logger = logging.getLogger(__name__)

LOG_FIELDS = [
    "block_number",
    "log_index",
    "transaction_hash",
    "address",
    "data",
    "topic0",
    "topic1",
    "topic2",
    "topic3",
]


def build_query(
    *,
    from_block: int,
    to_block: int | None,
    topic0s: Sequence[str],
    contract: str | None,
) -> dict[str, Any]:
    """Build the JSON body of a HyperSync query."""
    selection: dict[str, Any] = {"topics": [[t.lower() for t in topic0s]]}
    if contract:
        selection["address"] = [contract.lower()]
    query: dict[str, Any] = {
        "from_block": from_block,
        "logs": [selection],
        "field_selection": {"log": LOG_FIELDS},
    }
    if to_block is not None:
        query["to_block"] = to_block  # exclusive
    return query


def _as_int(v: Any) -> int:
    if isinstance(v, str):
        return int(v, 16) if v.startswith("0x") else int(v)
    return int(v)


def parse_log(raw: dict[str, Any]) -> EventLog:
    """Map one HyperSync log object to an `EventLog`."""
    topics = tuple(
        str(raw[k]).lower()
        for k in ("topic0", "topic1", "topic2", "topic3")
        if raw.get(k)
    )
    return EventLog(
        topics=topics,
        data_hex=str(raw.get("data") or "0x"),
        block_number=_as_int(raw["block_number"]),
        tx_hash=str(raw.get("transaction_hash") or "").lower(),
        log_index=_as_int(raw["log_index"]),
        address=str(raw.get("address") or "").lower(),
    )


def parse_response(payload: dict[str, Any], position: int) -> LogBatch:
    """Map a query response to a `LogBatch`. Raises ValueError on protocol violations."""
    if "next_block" not in payload:
        raise ValueError("response is missing next_block")
    data = payload.get("data") or []
    if isinstance(data, dict):
        data = [data]
    logs = [parse_log(raw) for section in data for raw in (section.get("logs") or [])]
    next_block = _as_int(payload["next_block"])
    if next_block <= position:
        raise ValueError(f"feed made no progress at block {position}")
    return LogBatch(logs=logs, next_position=next_block)


class HypersyncFeed:
    """Async HyperSync feed.

    Parameters
    ----------
    config : FeedConfig
        Endpoint URL, bearer token, optional contract filter and timeouts.
    topic0s : Sequence[str]
        Registered topic0 hashes to select.
    transport : httpx.AsyncBaseTransport | None
        Optional transport override (tests use `httpx.MockTransport`).
    """

    def __init__(
        self,
        config: FeedConfig,
        topic0s: Sequence[str],
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._topic0s = list(topic0s)
        self._stop: int | None = config.to_block
        headers = {"Content-Type": "application/json"}
        if config.bearer_token:
            headers["Authorization"] = f"Bearer {config.bearer_token}"
        self.client = httpx.AsyncClient(
            base_url=config.url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(config.timeout_s),
            limits=httpx.Limits(max_connections=config.max_connections),
            transport=transport,
        )

    async def current_height(self) -> int:
        r = await self.client.get("/height")
        r.raise_for_status()
        # /height is the latest block number; the scan end is exclusive
        height = _as_int(r.json()["height"]) + 1
        if self._stop is None or self._stop > height:
            self._stop = height
        logger.debug("hypersync height=%d stop=%d", height, self._stop)
        return height

    async def request_batch(self, position: int) -> FeedResponse:
        if self._stop is None:
            raise RuntimeError("current_height() must be called before request_batch()")
        if position >= self._stop:
            return END_OF_STREAM
        query = build_query(
            from_block=position,
            to_block=self._stop,
            topic0s=self._topic0s,
            contract=self._config.contract,
        )
        r = await self.client.post("/query", json=query)
        r.raise_for_status()
        batch = parse_response(r.json(), position)
        # never step past the captured target
        if batch.next_position > self._stop:
            batch = LogBatch(logs=batch.logs, next_position=self._stop)
        return batch

    async def aclose(self) -> None:
        await self.client.aclose()
