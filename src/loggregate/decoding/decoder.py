"""Parameter decoder.

Extracts the tracked integer parameter of a matched log from its topics
(indexed parameter) or from its data head (non-indexed parameter). Any
malformed payload raises `DecodeFailure`; the scan controller counts it
and moves on.
"""

from __future__ import annotations

from typing import Any

from loggregate.core.models import EventLog
from loggregate.decoding.specs import EventSpec
from loggregate.decoding.utils import data_bytes, parse_int_word, parse_word, topic_bytes, word_at
from loggregate.exceptions import DecodeFailure


def _failure(reason: str, spec: EventSpec, log: EventLog, **extra: Any) -> DecodeFailure:
    return DecodeFailure(
        reason,
        {"event": spec.name, "block": log.block_number, "tx": log.tx_hash, "log_index": log.log_index, **extra},
    )


class ParameterDecoder:
    """Decode the configured integer parameter of matched logs."""

    def decode(self, spec: EventSpec, log: EventLog) -> int:
        param = spec.parameter
        if param is None:
            raise _failure("event has no tracked parameter", spec, log)

        expected_topics = len(spec.topic_fields) + 1
        if len(log.topics) != expected_topics:
            raise _failure("topic count mismatch", spec, log, expected=expected_topics, got=len(log.topics))

        try:
            if param.indexed:
                word = topic_bytes(log.topics[param.slot])
            else:
                word = word_at(data_bytes(log.data_hex), param.slot)
        except ValueError as e:
            raise _failure(f"malformed payload: {e}", spec, log) from e

        return parse_int_word(word, param.type)

    def decode_all(self, spec: EventSpec, log: EventLog) -> dict[str, Any]:
        """Decode every static field (dynamic ones are shown as a placeholder)."""
        values: dict[str, Any] = {}
        try:
            for tf in spec.topic_fields:
                if tf.index >= len(log.topics):
                    raise ValueError("missing topic")
                values[tf.name] = parse_word(topic_bytes(log.topics[tf.index]), tf.type)
            data = data_bytes(log.data_hex)
            for df in spec.data_fields:
                if df.dynamic or "[" in df.type or df.type.startswith("("):
                    values[df.name] = f"<{df.type}>"
                    continue
                values[df.name] = parse_word(word_at(data, df.word_index), df.type)
        except ValueError as e:
            raise _failure(f"malformed payload: {e}", spec, log) from e
        return values
