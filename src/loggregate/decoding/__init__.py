"""Event decoding for the scan core.

This package provides:
- Event specification types (EventSpec, TopicFieldSpec, DataFieldSpec, ParameterSpec)
- Signature parsing into a topic0 registry (make_registry)
- Topic0 matching (EventMatcher) and parameter decoding (ParameterDecoder)
"""

from loggregate.decoding.decoder import ParameterDecoder
from loggregate.decoding.matcher import UNKNOWN, EventMatcher, Unknown
from loggregate.decoding.registry import EventRegistryProvider, add_event_spec, add_many
from loggregate.decoding.registry_builder import event_spec_from_signature, make_registry, resolve_parameter
from loggregate.decoding.specs import (
    DataFieldSpec,
    EventRegistry,
    EventSpec,
    ParameterSpec,
    TopicFieldSpec,
)

__all__ = [
    "ParameterDecoder",
    "EventMatcher",
    "UNKNOWN",
    "Unknown",
    "EventRegistryProvider",
    "add_event_spec",
    "add_many",
    "event_spec_from_signature",
    "make_registry",
    "resolve_parameter",
    "DataFieldSpec",
    "EventRegistry",
    "EventSpec",
    "ParameterSpec",
    "TopicFieldSpec",
]
