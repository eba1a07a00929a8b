"""Order-preserving keys for secondary-index B+trees.

An index key is the order-preserving encoding of each indexed value,
concatenated in index order, followed by the 8-byte row id key of the row it
points at. Because byte order matches value order, an equality lookup is a
plain key-range scan. The row id suffix keeps keys distinct when many rows
share one indexed value.
"""

from __future__ import annotations

import struct
from typing import Iterable, Optional, Sequence

from prehnite.schema import Value

_IDX_NULL = 0x00
_IDX_BOOL = 0x01
_IDX_INT = 0x02
_IDX_REAL = 0x03
_IDX_TEXT = 0x04

_SIGN_BIT = 1 << 63
_U64_MASK = (1 << 64) - 1
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1


def encode_index_value(value: Value) -> bytes:
    """Self-delimiting, order-preserving encoding of one value."""
    if value is None:
        return bytes([_IDX_NULL])
    if isinstance(value, bool):
        return bytes([_IDX_BOOL, 1 if value else 0])
    if isinstance(value, int):
        if not _I64_MIN <= value <= _I64_MAX:
            raise ValueError(f"integer {value} does not fit in 64 bits")
        # Flipping the sign bit turns two's-complement order into unsigned order.
        ordered = (value & _U64_MASK) ^ _SIGN_BIT
        return bytes([_IDX_INT]) + ordered.to_bytes(8, "big")
    if isinstance(value, float):
        bits = struct.unpack(">Q", struct.pack(">d", value))[0]
        ordered = (~bits & _U64_MASK) if bits & _SIGN_BIT else (bits | _SIGN_BIT)
        return bytes([_IDX_REAL]) + ordered.to_bytes(8, "big")
    if isinstance(value, str):
        # Escape interior NULs as 0x00 0x01 and terminate with 0x00 0x00.
        escaped = value.encode("utf-8").replace(b"\x00", b"\x00\x01")
        return bytes([_IDX_TEXT]) + escaped + b"\x00\x00"
    raise TypeError(f"cannot index value of type {type(value).__name__}")


def encode_index_key(values: Sequence[Value], columns: Iterable[int], rowid: bytes) -> bytes:
    """A full index key: the encoded values at `columns`, then the row id key."""
    return b"".join(encode_index_value(values[column]) for column in columns) + bytes(rowid)


def prefix_upper_bound(prefix: bytes) -> Optional[bytes]:
    """The smallest byte string greater than every string starting with `prefix`.

    Returns None when `prefix` is empty or made up entirely of 0xFF bytes.
    """
    stripped = bytes(prefix).rstrip(b"\xff")
    if not stripped:
        return None
    return stripped[:-1] + bytes([stripped[-1] + 1])