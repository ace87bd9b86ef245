"""Decoding utilities: hex payloads, ABI word access and typed parsers."""

from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address


def data_bytes(data_hex: str) -> bytes:
    """Decode a 0x-prefixed hex payload. Raises ValueError on malformed input."""
    h = data_hex[2:] if data_hex[:2].lower() == "0x" else data_hex
    return bytes.fromhex(h) if h else b""


def topic_bytes(topic_hex: str) -> bytes:
    """Decode one 32-byte topic. Raises ValueError if it is not exactly 32 bytes."""
    b = data_bytes(topic_hex)
    if len(b) != 32:
        raise ValueError(f"topic must be 32 bytes, got {len(b)}")
    return b


def word_at(data: bytes, i: int) -> bytes:
    """Return the i-th 32-byte ABI word. Raises ValueError if the payload is too short."""
    start = 32 * i
    end = start + 32
    if len(data) < end:
        raise ValueError(f"data has {len(data)} bytes, word {i} needs {end}")
    return data[start:end]


def parse_int_word(word: bytes, typ: str) -> int:
    """Parse a 32-byte word as `uintN` / `intN` (two's complement for signed)."""
    if typ.startswith("uint"):
        return int.from_bytes(word, "big", signed=False)
    v = int.from_bytes(word, "big", signed=False)
    bits = int(typ[3:]) if typ != "int" else 256
    # Sign-extended in the word; reduce to the declared width first
    v &= (1 << bits) - 1
    if v >= 2 ** (bits - 1):
        v -= 2**bits
    return v


def parse_word(word: bytes, typ: str) -> Any:
    """Parse one ABI word according to the declared static type."""
    if typ == "address":
        return to_checksum_address("0x" + word[-20:].hex())
    if typ == "bool":
        return bool(int.from_bytes(word, "big"))
    if typ.startswith("uint") or typ.startswith("int"):
        return parse_int_word(word, typ)
    if typ.startswith("bytes") and typ != "bytes":
        size = int(typ[5:])
        return "0x" + word[:size].hex()
    return "0x" + word.hex()
