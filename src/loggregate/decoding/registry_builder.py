"""Registry builder: event signatures → EventRegistry.

This module provides the tools for building the topic0 table used by the
matcher:
- `event_spec_from_signature()` parses one human-readable signature
  (`Transfer(address indexed from, address indexed to, uint256 value)`)
- `resolve_parameter()` binds the tracked parameter (by name or position)
  and rejects non-integer types
- `make_registry()` builds a registry from one or many signatures

All failures here are `SetupError`: nothing is validated per log.
"""

from __future__ import annotations

from eth_utils import keccak

from loggregate.decoding.registry import add_event_spec
from loggregate.decoding.specs import (
    DataFieldSpec,
    EventRegistry,
    EventSpec,
    ParameterSpec,
    TopicFieldSpec,
    is_integer_type,
)
from loggregate.exceptions import SetupError

_ALIASES = {"uint": "uint256", "int": "int256"}


# ---- Helpers: ABI type layout ----


def _split_params(params_str: str) -> list[str]:
    """Split the parameter list by commas while respecting nested tuple types."""
    items: list[str] = []
    depth = 0
    buf: list[str] = []
    for ch in params_str:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            items.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
    if buf:
        items.append("".join(buf).strip())
    return [i for i in items if i]


def _tuple_components(abi_type: str) -> list[str] | None:
    t = abi_type[5:] if abi_type.startswith("tuple(") else abi_type
    if t.startswith("(") and t.endswith(")"):
        return [_canonical_type(_parse_param(p, "_")[1]) for p in _split_params(t[1:-1])]
    return None


def _canonical_type(abi_type: str) -> str:
    """Canonical form used for the topic0 hash (`uint` → `uint256`, tuples unnamed)."""
    t = abi_type.strip()
    suffix = ""
    while t.endswith("]"):
        base, _, dim = t.rpartition("[")
        suffix = f"[{dim}" + suffix
        t = base
    comps = _tuple_components(t)
    if comps is not None:
        return f"({','.join(comps)})" + suffix
    return _ALIASES.get(t, t) + suffix


def is_dynamic(abi_type: str) -> bool:
    """True if the type is encoded out of line (head slot holds an offset)."""
    t = abi_type.strip()
    if t in ("string", "bytes") or t.endswith("[]"):
        return True
    if t.endswith("]"):
        return is_dynamic(t[: t.rindex("[")])
    comps = _tuple_components(t)
    if comps is not None:
        return any(is_dynamic(c) for c in comps)
    return False


def head_words(abi_type: str) -> int:
    """Number of 32-byte head slots the type occupies in the data section."""
    t = abi_type.strip()
    if is_dynamic(t):
        return 1
    if t.endswith("]"):
        base, _, dim = t[:-1].rpartition("[")
        return int(dim) * head_words(base)
    comps = _tuple_components(t)
    if comps is not None:
        return sum(head_words(c) for c in comps)
    return 1


def _parse_param(p: str, fallback_name: str) -> tuple[str, str, bool]:
    """Parse one parameter fragment into (name, abi_type, indexed)."""
    s = " ".join(p.strip().split())
    indexed = False
    if " indexed " in f" {s} ":
        indexed = True
        s = f" {s} ".replace(" indexed ", " ").strip()
    # tuple types may contain spaces; the name is whatever follows the last ')'
    close = s.rfind(")")
    if close != -1:
        abi_type, rest = s[: close + 1], s[close + 1 :]
        # keep array suffixes attached to the type
        while rest.startswith("["):
            end = rest.index("]") + 1
            abi_type, rest = abi_type + rest[:end], rest[end:]
        name = rest.strip() or fallback_name
        return (name, abi_type, indexed)
    tokens = s.split()
    if not tokens:
        raise SetupError("empty parameter in event signature")
    if len(tokens) == 1:
        return (fallback_name, tokens[0], indexed)
    return (tokens[-1], " ".join(tokens[:-1]), indexed)


# ---- Signature → EventSpec ----


def event_spec_from_signature(signature: str, parameter: str | int | None = None) -> EventSpec:
    """Build an EventSpec from a Solidity event signature string.

    Example input:
      "Transfer(address indexed from, address indexed to, uint256 value)"

    The optional leading `event` keyword and an `anonymous` suffix are not
    accepted: anonymous events have no topic0 to match on.
    """
    sig = signature.strip()
    if sig.startswith("event "):
        sig = sig[len("event ") :].strip()
    open_paren = sig.find("(")
    close_paren = sig.rfind(")")
    if open_paren <= 0 or close_paren == -1 or close_paren < open_paren or sig[close_paren + 1 :].strip():
        raise SetupError("invalid event signature", {"signature": signature})
    name = sig[:open_paren].strip()
    if not name.isidentifier():
        raise SetupError("invalid event name", {"signature": signature})

    parsed = [
        _parse_param(part, fallback_name=f"arg{i}")
        for i, part in enumerate(_split_params(sig[open_paren + 1 : close_paren]))
    ]
    if sum(1 for (_, _, ix) in parsed if ix) > 3:
        raise SetupError("an event can have at most 3 indexed parameters", {"signature": signature})

    canonical_signature = f"{name}({','.join(_canonical_type(t) for (_, t, _) in parsed)})"
    topic0 = "0x" + keccak(text=canonical_signature).hex()

    # Build field specs
    topic_fields: list[TopicFieldSpec] = []
    data_fields: list[DataFieldSpec] = []
    params: list[ParameterSpec] = []
    word = 0
    for position, (n, t, ix) in enumerate(parsed):
        t = _canonical_type(t)
        if ix:
            slot = len(topic_fields) + 1
            topic_fields.append(TopicFieldSpec(n, slot, t))
        else:
            slot = word
            data_fields.append(DataFieldSpec(n, slot, t, dynamic=is_dynamic(t)))
            word += head_words(t)
        params.append(ParameterSpec(name=n, position=position, type=t, indexed=ix, slot=slot))

    spec = EventSpec(
        topic0=topic0,
        name=name,
        signature=canonical_signature,
        topic_fields=topic_fields,
        data_fields=data_fields,
    )
    if parameter is None:
        return spec
    return EventSpec(
        topic0=spec.topic0,
        name=spec.name,
        signature=spec.signature,
        topic_fields=spec.topic_fields,
        data_fields=spec.data_fields,
        parameter=resolve_parameter(name, params, parameter),
    )


def resolve_parameter(event_name: str, params: list[ParameterSpec], parameter: str | int) -> ParameterSpec:
    """Bind the tracked parameter by 0-based position or by name; it must be an integer type."""
    if isinstance(parameter, str) and parameter.strip().isdigit():
        parameter = int(parameter.strip())

    if isinstance(parameter, int):
        if not 0 <= parameter < len(params):
            raise SetupError(
                "parameter index out of range",
                {"event": event_name, "index": parameter, "params": len(params)},
            )
        found = params[parameter]
    else:
        matches = [p for p in params if p.name == parameter]
        if not matches:
            raise SetupError(
                f'parameter "{parameter}" not found in event {event_name}',
                {"available": ", ".join(p.name for p in params) or "-"},
            )
        found = matches[0]

    if not is_integer_type(found.type):
        raise SetupError(
            f'parameter "{found.name}" of {event_name} is not an integer',
            {"type": found.type},
        )
    return found


def make_registry(signatures: str | list[str] | tuple[str, ...], parameter: str | int | None = None) -> EventRegistry:
    """Create a registry from one or multiple event signatures.

    Args:
        signatures: Single signature string or a sequence of signature strings
        parameter: Tracked parameter, validated against every signature

    Returns:
        EventRegistry with one entry per distinct topic0
    """
    sig_list = [signatures] if isinstance(signatures, str) else list(signatures)
    if not sig_list:
        raise SetupError("at least one event signature is required")

    reg: EventRegistry = {}
    for signature in sig_list:
        spec = event_spec_from_signature(signature, parameter)
        existing = reg.get(spec.topic0)
        if existing is not None and existing.parameter != spec.parameter:
            raise SetupError(
                "two signatures share a topic0 but track different parameters",
                {"topic0": spec.topic0},
            )
        add_event_spec(reg, spec)
    return reg
