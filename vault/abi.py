"""
abi.py - Fixed calling interface for operations

Calldata layout: a 4-byte selector followed by the arguments, each encoded
in 32-byte words using head/tail layout for dynamic values:
    - uint256, uint8: big-endian unsigned integer
    - address: 20 bytes, left padded with zeros
    - bool: 0 or 1
    - string: offset in the head; length word plus UTF-8 bytes padded to a
      word boundary in the tail

The selector is the first 4 bytes of sha3_256 over the canonical signature,
e.g. "add(uint256,uint256)".

Every decoding problem raises InvalidArgument so that a malformed call is
rejected like any other bad input.
"""

from __future__ import annotations
import hashlib
from typing import Any, Sequence, Tuple

from .core import InvalidArgument, UINT256_MAX, normalize_address


WORD = 32
SELECTOR_SIZE = 4

TYPE_UINT256 = "uint256"
TYPE_UINT8 = "uint8"
TYPE_ADDRESS = "address"
TYPE_BOOL = "bool"
TYPE_STRING = "string"

_UINT_LIMITS = {
    TYPE_UINT256: UINT256_MAX,
    TYPE_UINT8: 2 ** 8 - 1,
}
_STATIC_TYPES = frozenset({TYPE_UINT256, TYPE_UINT8, TYPE_ADDRESS, TYPE_BOOL})
_DYNAMIC_TYPES = frozenset({TYPE_STRING})
SUPPORTED_TYPES = _STATIC_TYPES | _DYNAMIC_TYPES


def selector(signature: str) -> bytes:
    """Return the 4-byte selector for a canonical signature."""
    return hashlib.sha3_256(signature.encode()).digest()[:SELECTOR_SIZE]


def make_signature(name: str, types: Sequence[str]) -> str:
    """Build the canonical signature "name(t1,t2)"."""
    for typ in types:
        if typ not in SUPPORTED_TYPES:
            raise ValueError(f"Unsupported ABI type: {typ}")
    return f"{name}({','.join(types)})"


def parse_signature(signature: str) -> Tuple[str, Tuple[str, ...]]:
    """
    Split a canonical signature into its name and argument types.

    >>> parse_signature("add(uint256,uint256)")
    ('add', ('uint256', 'uint256'))
    """
    if "(" not in signature or not signature.endswith(")"):
        raise ValueError(f"Malformed signature: {signature!r}")
    name, _, rest = signature.partition("(")
    inner = rest[:-1]
    types = tuple(t.strip() for t in inner.split(",")) if inner else ()
    make_signature(name, types)
    return name, types


# ============================================================================
# ENCODING
# ============================================================================

def _encode_uint(value: int, limit: int = UINT256_MAX) -> bytes:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidArgument(f"Expected an integer, got {type(value).__name__}")
    if value < 0 or value > limit:
        raise InvalidArgument(f"Integer {value} out of range [0, {limit}]")
    return value.to_bytes(WORD, "big")


def _encode_static(typ: str, value: Any) -> bytes:
    if typ in _UINT_LIMITS:
        return _encode_uint(value, _UINT_LIMITS[typ])
    if typ == TYPE_ADDRESS:
        return bytes.fromhex(normalize_address(value)[2:]).rjust(WORD, b"\x00")
    if typ == TYPE_BOOL:
        if not isinstance(value, bool):
            raise InvalidArgument(f"Expected a bool, got {type(value).__name__}")
        return _encode_uint(int(value))
    raise ValueError(f"Unsupported ABI type: {typ}")


def _encode_string(value: Any) -> bytes:
    if not isinstance(value, str):
        raise InvalidArgument(f"Expected a string, got {type(value).__name__}")
    raw = value.encode("utf-8")
    padding = (-len(raw)) % WORD
    return _encode_uint(len(raw)) + raw + b"\x00" * padding


def encode(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """Encode values according to their ABI types."""
    if len(types) != len(values):
        raise InvalidArgument(f"Expected {len(types)} values, got {len(values)}")
    head_size = WORD * len(types)
    head = b""
    tail = b""
    for typ, value in zip(types, values):
        if typ in _DYNAMIC_TYPES:
            head += _encode_uint(head_size + len(tail))
            tail += _encode_string(value)
        else:
            head += _encode_static(typ, value)
    return head + tail


def encode_call(signature: str, values: Sequence[Any] = ()) -> bytes:
    """Encode a full call: selector followed by encoded arguments."""
    _, types = parse_signature(signature)
    return selector(signature) + encode(types, values)


# ============================================================================
# DECODING
# ============================================================================

def _word(data: bytes, offset: int) -> bytes:
    if offset < 0 or offset + WORD > len(data):
        raise InvalidArgument(f"Calldata too short: need word at {offset}, have {len(data)} bytes")
    return data[offset:offset + WORD]


def _decode_static(typ: str, word: bytes) -> Any:
    number = int.from_bytes(word, "big")
    if typ in _UINT_LIMITS:
        if number > _UINT_LIMITS[typ]:
            raise InvalidArgument(f"Value {number} does not fit {typ}")
        return number
    if typ == TYPE_ADDRESS:
        if word[:WORD - 20] != b"\x00" * (WORD - 20):
            raise InvalidArgument("Address word has dirty high bytes")
        return "0x" + word[WORD - 20:].hex()
    if typ == TYPE_BOOL:
        if number > 1:
            raise InvalidArgument(f"Invalid bool encoding: {number}")
        return bool(number)
    raise ValueError(f"Unsupported ABI type: {typ}")


def _decode_string(data: bytes, offset: int) -> str:
    length = int.from_bytes(_word(data, offset), "big")
    start = offset + WORD
    if start + length > len(data):
        raise InvalidArgument("String runs past end of calldata")
    try:
        return data[start:start + length].decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidArgument(f"String is not valid UTF-8: {e}") from None


def decode(types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    """Decode a sequence of ABI values."""
    values = []
    for i, typ in enumerate(types):
        word = _word(data, i * WORD)
        if typ in _DYNAMIC_TYPES:
            values.append(_decode_string(data, int.from_bytes(word, "big")))
        else:
            values.append(_decode_static(typ, word))
    return tuple(values)


def split_call(data: bytes) -> Tuple[bytes, bytes]:
    """Split calldata into (selector, encoded arguments)."""
    if len(data) < SELECTOR_SIZE:
        raise InvalidArgument(f"Calldata shorter than a selector: {len(data)} bytes")
    return data[:SELECTOR_SIZE], data[SELECTOR_SIZE:]
