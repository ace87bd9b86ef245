from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from loggregate.core.config import ScanConfig
from loggregate.core.models import DisplaySnapshot, EventLog, ProgressInfo

TRANSFER_SIG = "Transfer(address indexed from, address indexed to, uint256 value)"
TRANSFER_T0 = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
ALICE = "0x" + "0" * 24 + "1111111111111111111111111111111111111111"
BOB = "0x" + "0" * 24 + "2222222222222222222222222222222222222222"
OTHER_T0 = "0x" + "ab" * 32


def word(value: int) -> str:
    return (value % (1 << 256)).to_bytes(32, "big").hex()


def transfer_log(value: int, block: int = 1, log_index: int = 0) -> EventLog:
    return EventLog(
        topics=(TRANSFER_T0, ALICE, BOB),
        data_hex="0x" + word(value),
        block_number=block,
        tx_hash=f"0x{block:064x}",
        log_index=log_index,
    )


def unknown_log(block: int = 1, log_index: int = 0) -> EventLog:
    return EventLog(
        topics=(OTHER_T0,),
        data_hex="0x" + word(1),
        block_number=block,
        tx_hash=f"0x{block:064x}",
        log_index=log_index,
    )


class RecordingDisplay:
    """Display sink that keeps every call for assertions."""

    def __init__(self) -> None:
        self.snapshots: list[DisplaySnapshot] = []
        self.progress: list[ProgressInfo] = []
        self.lines: list[str] = []

    def render_snapshot(self, snapshot: DisplaySnapshot) -> None:
        self.snapshots.append(snapshot)

    def render_progress(self, progress: ProgressInfo) -> None:
        self.progress.append(progress)

    def append_log_line(self, text: str) -> None:
        self.lines.append(text)


@pytest.fixture
def display() -> RecordingDisplay:
    return RecordingDisplay()


@pytest.fixture
def diagnostics() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mock_feed() -> Any:
    feed = AsyncMock()
    feed.current_height = AsyncMock(return_value=1_000)
    feed.request_batch = AsyncMock(return_value=None)
    feed.aclose = AsyncMock()
    return feed


@pytest.fixture
def scan_config() -> ScanConfig:
    return ScanConfig(signatures=(TRANSFER_SIG,), parameter="value", snapshot_interval=100, log_interval=500)
