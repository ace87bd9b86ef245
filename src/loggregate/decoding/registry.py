"""Registry helpers.

- `add_event_spec(registry, spec)` → insert one spec (lowercases key)
- `add_many(registry, specs)` → insert multiple
- `EventRegistryProvider` → static provider handed to the scan controller
"""

from __future__ import annotations

from collections.abc import Iterable

from loggregate.decoding.specs import EventRegistry, EventSpec


def add_event_spec(registry: EventRegistry, spec: EventSpec) -> None:
    """Insert one spec into the registry keyed by lowercased topic0."""
    registry[spec.topic0.lower()] = spec


def add_many(registry: EventRegistry, specs: Iterable[EventSpec]) -> None:
    """Insert many specs into the registry."""
    for s in specs:
        add_event_spec(registry, s)


class EventRegistryProvider:
    """
    Simple registry provider that always returns the same EventRegistry.

    Bridges the signature-parsing setup step and the scan controller, which
    only depends on `IEventRegistryProvider`.
    """

    def __init__(self, registry: EventRegistry) -> None:
        self._registry = registry

    def get_registry(self) -> EventRegistry:
        return self._registry
