import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from loggregate import cli as cli_module
from loggregate.cli import cli
from loggregate.core.models import ScanResult, ScanState
from loggregate.exceptions import FeedError
from loggregate.networks import DEFAULT_NETWORKS

from conftest import TRANSFER_SIG

CONTRACT = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


@pytest.fixture
def cache(tmp_path: Path) -> Path:
    # more entries than the defaults, so no refresh is attempted
    path = tmp_path / "networks.json"
    table = {**DEFAULT_NETWORKS, "zora": "http://zora.hypersync.xyz", "base-sepolia": "http://base-sepolia.hypersync.xyz"}
    path.write_text(json.dumps(table))
    return path


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    recorded: list[dict[str, Any]] = []

    async def fake_run_scan(**kwargs: Any) -> ScanResult:
        recorded.append(kwargs)
        return ScanResult(state=ScanState.DONE, snapshot=None, last_position=kwargs["config"].from_block)

    monkeypatch.setattr(cli_module, "run_scan", fake_run_scan)
    monkeypatch.setattr(cli_module, "setup_logging", lambda **kwargs: None)
    return recorded


def test_scan_builds_config_from_options(calls: list, cache: Path) -> None:
    result = CliRunner().invoke(
        cli,
        [
            "scan", "-e", TRANSFER_SIG, "-p", "value", "-n", "zora", "-c", CONTRACT,
            "-d", "18", "-b", "100", "--to-block", "200", "--cache", str(cache), "--plain",
        ],
    )
    assert result.exit_code == 0, result.output
    config = calls[0]["config"]
    assert config.signatures == (TRANSFER_SIG,)
    assert config.parameter == "value"
    assert config.contract == CONTRACT
    assert (config.decimals, config.from_block, config.to_block) == (18, 100, 200)
    assert calls[0]["feed_config"].url == "http://zora.hypersync.xyz"
    assert calls[0]["use_rpc"] is False


def test_scan_with_rpc_url(calls: list, cache: Path) -> None:
    result = CliRunner().invoke(
        cli,
        ["scan", "-e", TRANSFER_SIG, "-p", "2", "--url", "http://localhost:8545", "--rpc", "--step", "250", "--cache", str(cache)],
    )
    assert result.exit_code == 0, result.output
    assert calls[0]["use_rpc"] is True
    assert calls[0]["feed_config"].step == 250
    assert calls[0]["feed_config"].url == "http://localhost:8545"


def test_bearer_token_from_environment(calls: list, cache: Path) -> None:
    result = CliRunner().invoke(
        cli,
        ["scan", "-e", TRANSFER_SIG, "-p", "value", "--cache", str(cache)],
        env={"HYPERSYNC_BEARER_TOKEN": "tok"},
    )
    assert result.exit_code == 0, result.output
    assert calls[0]["feed_config"].bearer_token == "tok"


def test_invalid_contract_rejected(calls: list, cache: Path) -> None:
    result = CliRunner().invoke(cli, ["scan", "-e", TRANSFER_SIG, "-p", "value", "-c", "0x1234", "--cache", str(cache)])
    assert result.exit_code == 2
    assert "40 hex" in result.output
    assert not calls


def test_rpc_requires_url(calls: list, cache: Path) -> None:
    result = CliRunner().invoke(cli, ["scan", "-e", TRANSFER_SIG, "-p", "value", "--rpc", "--cache", str(cache)])
    assert result.exit_code == 2


def test_empty_block_range_rejected(calls: list, cache: Path) -> None:
    result = CliRunner().invoke(
        cli, ["scan", "-e", TRANSFER_SIG, "-p", "value", "-b", "10", "--to-block", "10", "--cache", str(cache)]
    )
    assert result.exit_code == 2


def test_unknown_network(calls: list, cache: Path) -> None:
    result = CliRunner().invoke(cli, ["scan", "-e", TRANSFER_SIG, "-p", "value", "-n", "atlantis", "--cache", str(cache)])
    assert result.exit_code == 1
    assert "not supported" in result.output
    assert not calls


def test_feed_error_exits_with_resume_hint(monkeypatch: pytest.MonkeyPatch, cache: Path) -> None:
    async def failing_run_scan(**kwargs: Any) -> ScanResult:
        raise FeedError("feed error: boom", last_position=42)

    monkeypatch.setattr(cli_module, "run_scan", failing_run_scan)
    monkeypatch.setattr(cli_module, "setup_logging", lambda **kwargs: None)
    result = CliRunner().invoke(cli, ["scan", "-e", TRANSFER_SIG, "-p", "value", "--cache", str(cache)])
    assert result.exit_code == 1
    assert "--from-block 42" in result.output


def test_cancelled_scan_exits_130(monkeypatch: pytest.MonkeyPatch, cache: Path) -> None:
    async def cancelled_run_scan(**kwargs: Any) -> ScanResult:
        return ScanResult(state=ScanState.DONE, snapshot=None, last_position=0, cancelled=True)

    monkeypatch.setattr(cli_module, "run_scan", cancelled_run_scan)
    monkeypatch.setattr(cli_module, "setup_logging", lambda **kwargs: None)
    result = CliRunner().invoke(cli, ["scan", "-e", TRANSFER_SIG, "-p", "value", "--cache", str(cache)])
    assert result.exit_code == 130


def test_networks_lists_categories(cache: Path) -> None:
    result = CliRunner().invoke(cli, ["networks", "--cache", str(cache)])
    assert result.exit_code == 0, result.output
    assert "Popular Mainnets" in result.output
    assert "base-sepolia" in result.output
    assert "Total 7 networks available" in result.output


def test_quiet_flag_reaches_logging_setup(calls: list, cache: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}
    monkeypatch.setattr(cli_module, "setup_logging", lambda **kwargs: seen.update(kwargs))
    result = CliRunner().invoke(cli, ["scan", "-e", TRANSFER_SIG, "-p", "value", "-q", "--cache", str(cache)])
    assert result.exit_code == 0, result.output
    assert seen["quiet"] is True
    assert seen["verbose"] is False
