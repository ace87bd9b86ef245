import json
from pathlib import Path

import httpx
import pytest

from loggregate.exceptions import SetupError, UnknownNetworkError
from loggregate.networks import DEFAULT_NETWORKS, NETWORKS_API_URL, NetworkDirectory, is_testnet

API_CHAINS = [
    {"name": "eth", "ecosystem": "evm", "chain_id": 1},
    {"name": "base-sepolia", "ecosystem": "evm"},
    {"name": "zora", "ecosystem": "evm"},
    {"name": "fuel", "ecosystem": "fuel"},
]


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_defaults_without_cache(tmp_path: Path) -> None:
    directory = NetworkDirectory.load(tmp_path / "missing.json")
    assert directory.networks == DEFAULT_NETWORKS
    assert directory.url_for("eth") == "http://eth.hypersync.xyz"


def test_corrupt_cache_falls_back(tmp_path: Path) -> None:
    cache = tmp_path / "networks.json"
    cache.write_text("{not json")
    assert NetworkDirectory.load(cache).networks == DEFAULT_NETWORKS


def test_unknown_network_is_setup_error(tmp_path: Path) -> None:
    directory = NetworkDirectory(cache_path=tmp_path / "n.json")
    with pytest.raises(UnknownNetworkError) as exc_info:
        directory.url_for("nope")
    assert isinstance(exc_info.value, SetupError)
    assert "eth" in str(exc_info.value)


@pytest.mark.asyncio
async def test_refresh_keeps_evm_chains_and_writes_cache(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == NETWORKS_API_URL
        return httpx.Response(200, json=API_CHAINS)

    cache = tmp_path / "sub" / "networks.json"
    directory = NetworkDirectory(cache_path=cache)
    async with client_for(handler) as client:
        networks = await directory.refresh(client=client, force=True)

    assert networks == {
        "eth": "http://eth.hypersync.xyz",
        "base-sepolia": "http://base-sepolia.hypersync.xyz",
        "zora": "http://zora.hypersync.xyz",
    }
    assert json.loads(cache.read_text()) == networks
    assert "zora" in NetworkDirectory.load(cache)


@pytest.mark.asyncio
async def test_refresh_failure_keeps_current_table(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    directory = NetworkDirectory(cache_path=tmp_path / "n.json")
    async with client_for(handler) as client:
        networks = await directory.refresh(client=client, force=True)
    assert networks == DEFAULT_NETWORKS
    assert not (tmp_path / "n.json").exists()


@pytest.mark.asyncio
async def test_refresh_skipped_when_cache_is_populated(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("API must not be called")

    table = {**DEFAULT_NETWORKS, "zora": "http://zora.hypersync.xyz"}
    directory = NetworkDirectory(table, cache_path=tmp_path / "n.json")
    async with client_for(handler) as client:
        assert await directory.refresh(client=client) == table


def test_categorize(tmp_path: Path) -> None:
    directory = NetworkDirectory(
        {"eth": "a", "base-sepolia": "b", "zora": "c"},
        cache_path=tmp_path / "n.json",
    )
    groups = directory.categorize()
    assert groups["mainnets"] == [("eth", "a")]
    assert groups["testnets"] == [("base-sepolia", "b")]
    assert groups["others"] == [("zora", "c")]
    assert len(directory) == 3


@pytest.mark.parametrize(("name", "expected"), [("sepolia", True), ("holesky-testnet", True), ("eth", False)])
def test_is_testnet(name: str, expected: bool) -> None:
    assert is_testnet(name) is expected
