"""Binary encoding of table schemas, the values the catalog stores by table name."""

from __future__ import annotations

import struct
from typing import Optional

from prehnite.codec import CorruptionError, _Reader, decode_values, encode_values
from prehnite.schema import (
    Column,
    ColumnStats,
    ColumnType,
    ForeignKeyAction,
    ForeignKeyTarget,
    HistogramBucket,
    Index,
    Schema,
)

_NO_PRIMARY_KEY = 0xFFFF


def _pack(out: bytearray, fmt: str, value: int, what: str) -> None:
    try:
        out += struct.pack(fmt, value)
    except struct.error:
        raise ValueError(f"{what} {value} does not fit the schema format") from None


def _write_str(out: bytearray, text: str) -> None:
    raw = text.encode("utf-8")
    _pack(out, "<H", len(raw), "string length")
    out += raw


def _read_str(reader: _Reader) -> str:
    raw = reader.take(reader.u16())
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise CorruptionError("schema holds non-UTF-8 text") from None


def _write_stats(out: bytearray, stats: ColumnStats) -> None:
    _pack(out, "<Q", stats.n_distinct, "n_distinct")
    _pack(out, "<Q", stats.null_count, "null_count")
    _pack(out, "<Q", stats.total_rows, "total_rows")
    _pack(out, "<I", len(stats.histogram), "bucket count")
    for bucket in stats.histogram:
        for bound in (bucket.lower, bucket.upper):
            encoded = encode_values([bound])
            _pack(out, "<I", len(encoded), "bucket value length")
            out += encoded
        _pack(out, "<Q", bucket.count, "bucket count")


def _read_stats(reader: _Reader) -> ColumnStats:
    n_distinct = reader.u64()
    null_count = reader.u64()
    total_rows = reader.u64()
    histogram = []
    for _ in range(reader.u32()):
        lower = decode_values(reader.take(reader.u32()), 1)[0]
        upper = decode_values(reader.take(reader.u32()), 1)[0]
        histogram.append(HistogramBucket(lower=lower, upper=upper, count=reader.u64()))
    return ColumnStats(
        n_distinct=n_distinct,
        null_count=null_count,
        total_rows=total_rows,
        histogram=histogram,
    )


def encode_schema(schema: Schema) -> bytes:
    """Encode a schema into the bytes stored under its table name."""
    out = bytearray()
    _pack(out, "<I", schema.root, "root page")
    _pack(out, "<Q", schema.next_rowid, "next_rowid")
    _write_str(out, schema.name)
    _pack(out, "<H", len(schema.columns), "column count")
    for column in schema.columns:
        out.append(column.type.value)
        _write_str(out, column.name)
        out.append(1 if column.not_null else 0)
        if column.foreign_key is None:
            out.append(0)
        else:
            out.append(1)
            _write_str(out, column.foreign_key.table)
            _write_str(out, column.foreign_key.column)
            out.append(column.foreign_key.on_delete.value)
        if column.stats is None:
            out.append(0)
        else:
            out.append(1)
            _write_stats(out, column.stats)
    _pack(out, "<H", len(schema.indexes), "index count")
    for index in schema.indexes:
        _pack(out, "<I", index.root, "index root page")
        _pack(out, "<H", len(index.columns), "index column count")
        for position in index.columns:
            _pack(out, "<H", position, "index column position")
        _write_str(out, index.name)
        out.append(1 if index.unique else 0)
        out.append(1 if index.is_building else 0)
    _pack(out, "<Q", schema.row_count, "row_count")
    pk = _NO_PRIMARY_KEY if schema.primary_key_column is None else schema.primary_key_column
    _pack(out, "<H", pk, "primary key column")
    _pack(out, "<Q", schema.mutations_since_analyze, "mutations_since_analyze")
    return bytes(out)


def _read_column(reader: _Reader) -> Column:
    type_tag = reader.u8()
    try:
        column_type = ColumnType(type_tag)
    except ValueError:
        raise CorruptionError(f"unknown type tag {type_tag}") from None
    name = _read_str(reader)
    not_null = reader.u8() != 0

    foreign_key: Optional[ForeignKeyTarget]
    fk_tag = reader.u8()
    if fk_tag == 0:
        foreign_key = None
    elif fk_tag == 1:
        table = _read_str(reader)
        parent_column = _read_str(reader)
        action_tag = reader.u8()
        try:
            action = ForeignKeyAction(action_tag)
        except ValueError:
            raise CorruptionError(f"unknown FK action tag {action_tag}") from None
        foreign_key = ForeignKeyTarget(table=table, column=parent_column, on_delete=action)
    else:
        raise CorruptionError(f"unknown column foreign-key tag {fk_tag}")

    stats: Optional[ColumnStats]
    stats_tag = reader.u8()
    if stats_tag == 0:
        stats = None
    elif stats_tag == 1:
        stats = _read_stats(reader)
    else:
        raise CorruptionError(f"unknown column stats tag {stats_tag}")

    return Column(
        name=name,
        type=column_type,
        not_null=not_null,
        foreign_key=foreign_key,
        stats=stats,
    )


def _read_index(reader: _Reader) -> Index:
    root = reader.u32()
    columns = [reader.u16() for _ in range(reader.u16())]
    name = _read_str(reader)
    unique = reader.u8() != 0
    is_building = reader.u8() != 0
    return Index(name=name, columns=columns, root=root, unique=unique, is_building=is_building)


def decode_schema(data: bytes) -> Schema:
    """Decode a schema produced by encode_schema."""
    reader = _Reader(data)
    root = reader.u32()
    next_rowid = reader.u64()
    name = _read_str(reader)
    columns = [_read_column(reader) for _ in range(reader.u16())]
    indexes = [_read_index(reader) for _ in range(reader.u16())]
    row_count = reader.u64()
    pk_tag = reader.u16()
    mutations = reader.u64()
    return Schema(
        name=name,
        columns=columns,
        root=root,
        next_rowid=next_rowid,
        row_count=row_count,
        indexes=indexes,
        primary_key_column=None if pk_tag == _NO_PRIMARY_KEY else pk_tag,
        mutations_since_analyze=mutations,
    )