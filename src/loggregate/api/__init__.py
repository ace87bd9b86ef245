"""Application entry points wiring concrete clients into the scan core."""

from loggregate.api.scan import build_registry, make_feed, run_scan

__all__ = ["build_registry", "make_feed", "run_scan"]
