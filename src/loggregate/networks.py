"""Network name → HyperSync endpoint directory with an on-disk cache.

`NetworkDirectory` is an explicit value built once at startup and passed to
whoever needs it; there is no module-level mutable table.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from loggregate.exceptions import UnknownNetworkError

logger = logging.getLogger(__name__)

NETWORKS_API_URL = "https://chains.hyperquery.xyz/active_chains"

DEFAULT_NETWORKS: dict[str, str] = {
    "eth": "http://eth.hypersync.xyz",
    "arbitrum": "http://arbitrum.hypersync.xyz",
    "optimism": "http://optimism.hypersync.xyz",
    "base": "http://base.hypersync.xyz",
    "polygon": "http://polygon.hypersync.xyz",
}

DEFAULT_CACHE_PATH = Path.home() / ".cache" / "loggregate" / "networks.json"

_TESTNET_MARKERS = ("sepolia", "goerli", "testnet", "test")


class ChainInfo(BaseModel):
    """One entry of the active-chains API response."""

    model_config = ConfigDict(extra="ignore")

    name: str
    ecosystem: str


def hypersync_url(name: str) -> str:
    return f"http://{name}.hypersync.xyz"


def is_testnet(name: str) -> bool:
    return any(marker in name for marker in _TESTNET_MARKERS)


class NetworkDirectory:
    """Known networks, loaded from cache and refreshable from the API."""

    def __init__(self, networks: Mapping[str, str] | None = None, *, cache_path: Path = DEFAULT_CACHE_PATH) -> None:
        self.cache_path = cache_path
        self._networks: dict[str, str] = dict(networks if networks is not None else DEFAULT_NETWORKS)

    @property
    def networks(self) -> dict[str, str]:
        return dict(self._networks)

    # ---- cache ----

    @classmethod
    def load(cls, cache_path: Path = DEFAULT_CACHE_PATH) -> NetworkDirectory:
        """Build a directory from the cache file, falling back to the defaults."""
        try:
            if cache_path.is_file():
                cached = json.loads(cache_path.read_text())
                if isinstance(cached, dict) and cached:
                    logger.debug("loaded %d networks from %s", len(cached), cache_path)
                    return cls({str(k): str(v) for k, v in cached.items()}, cache_path=cache_path)
        except (OSError, ValueError) as e:
            logger.warning("failed to load networks from cache: %s", e)
        return cls(DEFAULT_NETWORKS, cache_path=cache_path)

    def save(self) -> None:
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(json.dumps(self._networks, indent=2))
            logger.debug("saved %d networks to %s", len(self._networks), self.cache_path)
        except OSError as e:
            logger.warning("failed to save networks to cache: %s", e)

    # ---- refresh ----

    async def refresh(self, *, client: httpx.AsyncClient | None = None, force: bool = False) -> dict[str, str]:
        """Fetch active EVM chains from the API and update the cache.

        Without `force`, a cache that already knows more networks than the
        defaults is used as-is. On any failure the current table is kept.
        """
        if not force and len(self._networks) > len(DEFAULT_NETWORKS):
            return self.networks

        owns_client = client is None
        client = client or httpx.AsyncClient(timeout=10)
        try:
            r = await client.get(NETWORKS_API_URL)
            r.raise_for_status()
            chains = [ChainInfo.model_validate(entry) for entry in r.json()]
        except (httpx.HTTPError, ValidationError, ValueError, TypeError) as e:
            logger.warning("failed to fetch networks: %s; using cached or default networks", e)
            return self.networks
        finally:
            if owns_client:
                await client.aclose()

        result = {c.name: hypersync_url(c.name) for c in chains if c.ecosystem == "evm"}
        if result:
            self._networks = result
            self.save()
        return self.networks

    # ---- lookup ----

    def url_for(self, name: str) -> str:
        try:
            return self._networks[name]
        except KeyError:
            available = ", ".join(list(self._networks)[:10])
            raise UnknownNetworkError(
                f"network '{name}' not supported",
                {"available": f"{available}... (use `loggregate networks` to see all)"},
            ) from None

    def categorize(self) -> dict[str, list[tuple[str, str]]]:
        """Split into popular mainnets, testnets and others."""
        groups: dict[str, list[tuple[str, str]]] = {"mainnets": [], "testnets": [], "others": []}
        for name, url in self._networks.items():
            if is_testnet(name):
                groups["testnets"].append((name, url))
            elif name in DEFAULT_NETWORKS:
                groups["mainnets"].append((name, url))
            else:
                groups["others"].append((name, url))
        return groups

    def __contains__(self, name: object) -> bool:
        return name in self._networks

    def __len__(self) -> int:
        return len(self._networks)
