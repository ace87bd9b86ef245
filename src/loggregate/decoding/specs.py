"""Event specification primitives and registry typing.

Defines lightweight dataclasses to describe how to decode events:
- `TopicFieldSpec` / `DataFieldSpec`: typed sources for indexed topics / data words
- `ParameterSpec`: the one integer field a scan aggregates
- `EventSpec`: one event rule (topic0, name, fields, tracked parameter)
- `EventRegistry`: mapping from topic0 → EventSpec
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

_INT_TYPE = re.compile(r"^u?int(8|16|24|32|40|48|56|64|72|80|88|96|104|112|120|128|136|144|152|160|168|176|184|192|200|208|216|224|232|240|248|256)?$")


def is_integer_type(abi_type: str) -> bool:
    """True for `uintN` / `intN` (and the bare `uint` / `int` aliases)."""
    return bool(_INT_TYPE.match(abi_type.strip()))


@dataclass(frozen=True)
class TopicFieldSpec:
    """Describe one indexed topic field (by topic index and ABI type)."""

    name: str
    index: int  # 1-based: topic 0 is the event hash
    type: str  # e.g., "address", "uint256", "int24", "bytes32"


@dataclass(frozen=True)
class DataFieldSpec:
    """Describe one field of the data section by its 32-byte head slot."""

    name: str
    word_index: int
    type: str  # e.g., "address", "uint256", "uint128"
    dynamic: bool = False  # head slot holds an offset, not the value


@dataclass(frozen=True)
class ParameterSpec:
    """The tracked parameter, resolved against the event layout at setup."""

    name: str
    position: int  # 0-based position in the declared parameter list
    type: str
    indexed: bool
    slot: int  # topic index if indexed, else data word index


@dataclass(frozen=True)
class EventSpec:
    """One event decoding rule."""

    topic0: str
    name: str
    signature: str  # canonical, e.g. "Transfer(address,address,uint256)"
    topic_fields: list[TopicFieldSpec]
    data_fields: list[DataFieldSpec]
    parameter: ParameterSpec | None = None


# The full registry keyed by topic0 (lowercased 0x-hex).
EventRegistry = dict[str, EventSpec]


def get_event_specs_topic0s(event_specs: Iterable[EventSpec]) -> list[str]:
    return [event_spec.topic0 for event_spec in event_specs]


def get_event_registry_topic0s(registry: EventRegistry) -> list[str]:
    return get_event_specs_topic0s(registry.values())
