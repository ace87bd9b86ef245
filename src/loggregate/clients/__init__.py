"""Log feed clients (HyperSync HTTP and JSON-RPC)."""

from loggregate.clients.hypersync import HypersyncFeed
from loggregate.clients.rpc import RPC, RpcLogFeed

__all__ = ["HypersyncFeed", "RPC", "RpcLogFeed"]
