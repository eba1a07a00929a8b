"""Binary encoding of table rows.

A row is a 16-byte MVCC header -- ``tx_min`` (the transaction that inserted
it) then ``tx_max`` (the transaction that deleted it, 0 while live) -- followed
by one tag-prefixed value per column. Everything is little-endian. Row ids
become 8-byte big-endian B+tree keys so byte order matches numeric order.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from prehnite.schema import Value

_TAG_NULL = 0
_TAG_INT = 1
_TAG_REAL = 2
_TAG_TEXT = 3
_TAG_BOOL = 4

_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1
_U64_MAX = (1 << 64) - 1


class CorruptionError(ValueError):
    """Raised when stored bytes cannot be decoded."""


@dataclass
class RowRecord:
    """A stored row: its MVCC visibility header and its column values."""

    tx_min: int
    tx_max: int
    values: List[Value] = field(default_factory=list)


def rowid_key(rowid: int) -> bytes:
    """The 8-byte big-endian B+tree key for a row id."""
    if not 0 <= rowid <= _U64_MAX:
        raise ValueError(f"rowid {rowid} is outside the unsigned 64-bit range")
    return rowid.to_bytes(8, "big")


def _check_u64(name: str, number: int) -> None:
    if not 0 <= number <= _U64_MAX:
        raise ValueError(f"{name} {number} is outside the unsigned 64-bit range")


def _encode_into(out: bytearray, values: Iterable[Value]) -> None:
    for value in values:
        if value is None:
            out.append(_TAG_NULL)
        elif isinstance(value, bool):
            out.append(_TAG_BOOL)
            out.append(1 if value else 0)
        elif isinstance(value, int):
            if not _I64_MIN <= value <= _I64_MAX:
                raise ValueError(f"integer {value} does not fit in 64 bits")
            out.append(_TAG_INT)
            out += struct.pack("<q", value)
        elif isinstance(value, float):
            out.append(_TAG_REAL)
            out += struct.pack("<d", value)
        elif isinstance(value, str):
            raw = value.encode("utf-8")
            out.append(_TAG_TEXT)
            out += struct.pack("<I", len(raw))
            out += raw
        else:
            raise TypeError(f"cannot encode value of type {type(value).__name__}")


class _Reader:
    """A bounds-checked cursor over a byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._data):
            raise CorruptionError("unexpected end of encoded data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def _unpack(self, fmt: str, size: int):
        return struct.unpack(fmt, self.take(size))[0]

    def u8(self) -> int:
        return self.take(1)[0]

    def u16(self) -> int:
        return self._unpack("<H", 2)

    def u32(self) -> int:
        return self._unpack("<I", 4)

    def u64(self) -> int:
        return self._unpack("<Q", 8)

    def i64(self) -> int:
        return self._unpack("<q", 8)

    def f64(self) -> float:
        return self._unpack("<d", 8)

    @property
    def exhausted(self) -> bool:
        return self._pos >= len(self._data)


def _decode_from(reader: _Reader, column_count: int, what: str) -> List[Value]:
    values: List[Value] = []
    for _ in range(column_count):
        tag = reader.u8()
        if tag == _TAG_NULL:
            values.append(None)
        elif tag == _TAG_INT:
            values.append(reader.i64())
        elif tag == _TAG_REAL:
            values.append(reader.f64())
        elif tag == _TAG_TEXT:
            raw = reader.take(reader.u32())
            try:
                values.append(raw.decode("utf-8"))
            except UnicodeDecodeError:
                raise CorruptionError(f"{what} holds non-UTF-8 text") from None
        elif tag == _TAG_BOOL:
            values.append(reader.u8() != 0)
        else:
            raise CorruptionError(f"unknown value tag {tag}")
    if not reader.exhausted:
        raise CorruptionError(f"{what} has trailing bytes after its columns")
    return values


def encode_row(tx_min: int, tx_max: int, values: Sequence[Value]) -> bytes:
    """Encode a row's MVCC header and values into the bytes a table B+tree stores."""
    _check_u64("tx_min", tx_min)
    _check_u64("tx_max", tx_max)
    out = bytearray(struct.pack("<QQ", tx_min, tx_max))
    _encode_into(out, values)
    return bytes(out)


def decode_row(data: bytes, column_count: int) -> RowRecord:
    """Decode the MVCC header and `column_count` values written by encode_row."""
    reader = _Reader(data)
    tx_min = reader.u64()
    tx_max = reader.u64()
    values = _decode_from(reader, column_count, "row")
    return RowRecord(tx_min=tx_min, tx_max=tx_max, values=values)


def encode_values(values: Sequence[Value]) -> bytes:
    """Encode values in the row format but without the MVCC header."""
    out = bytearray()
    _encode_into(out, values)
    return bytes(out)


def decode_values(data: bytes, column_count: int) -> List[Value]:
    """Decode `column_count` values written by encode_values."""
    return _decode_from(_Reader(data), column_count, "spilled row")


def _is_nan(value: Value) -> bool:
    return isinstance(value, float) and math.isnan(value)