"""Topic0 → EventSpec classification."""

from __future__ import annotations

import enum

from loggregate.core.models import EventLog
from loggregate.decoding.specs import EventRegistry, EventSpec


class Unknown(enum.Enum):
    """Classification of a log whose topic0 is absent or not registered."""

    UNKNOWN = "Unknown"


UNKNOWN = Unknown.UNKNOWN


class EventMatcher:
    """O(1) lookup of a log's primary topic in the registry built at setup."""

    def __init__(self, registry: EventRegistry) -> None:
        self._table = {topic0.lower(): spec for topic0, spec in registry.items()}

    def match(self, log: EventLog) -> EventSpec | Unknown:
        if not log.topics or not log.topics[0]:
            return UNKNOWN
        return self._table.get(log.topics[0].lower(), UNKNOWN)

    def __len__(self) -> int:
        return len(self._table)
