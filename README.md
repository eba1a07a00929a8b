# prehnite

This package holds two parts of a small relational database engine in
plain Python with no dependencies. The first part is the binary encodings
for rows, table schemas and secondary-index keys. The second is the
arithmetic that `EXPLAIN` and `EXPLAIN ANALYZE` use to estimate and report
row counts.

## Modules

- `prehnite.schema` contains the table metadata model: `Schema`, `Column`,
  `Index`, `ColumnType`, `ForeignKeyTarget`, `ForeignKeyAction`,
  `ColumnStats` and `HistogramBucket`. `Schema.column_index(name)` returns a
  column's position, or `None` when the table has no column of that name.
  A stored value is one of `None`, `bool`, `int`, `float` or `str`.
- `prehnite.codec` encodes rows. A row starts with a 16-byte MVCC header:
  `tx_min` is the transaction that inserted the row, and `tx_max` is the
  transaction that deleted it, or 0 while the row is live. Tagged
  little-endian values follow the header.
  - `encode_row` and `decode_row` write and read a row. `decode_row` returns
    a `RowRecord`.
  - `encode_values` and `decode_values` use the same value format without
    the header.
  - `rowid_key` turns a row id into an 8-byte big-endian key.
  - Bytes that cannot be decoded raise `CorruptionError`, a subclass of
    `ValueError`. This covers truncation, trailing bytes, unknown tags and
    invalid UTF-8.
  - Values that cannot be encoded raise `ValueError` (out of the 64-bit
    range) or `TypeError` (an unsupported type).
- `prehnite.indexkey` builds order-preserving index keys. The byte order of
  the keys matches the order of the values.
  - `encode_index_value` encodes one value.
  - `encode_index_key` encodes the chosen columns of a row and appends the
    row id key.
  - `prefix_upper_bound` returns the exclusive upper bound of a prefix range
    scan. It returns `None` for an empty prefix or one that is all `0xFF`.
- `prehnite.schemacodec` converts a `Schema` to the bytes a catalog stores
  and back, using `encode_schema` and `decode_schema`. The encoding covers
  column types, NOT NULL flags, foreign keys, column statistics with
  histograms, indexes, the row count, the primary key and the count of
  mutations since the last analysis.
- `prehnite.estimates` provides cardinality helpers:
  - `scale_rows` rounds to the nearest row. A non-zero selectivity always
    gives at least one row.
  - `group_rows_estimate` returns `ceil(sqrt(n))`.
  - `interpolate` returns the position of a key between two byte-encoded
    histogram bounds.
  - `index_scan_rows` keeps 10% of rows with two bounds, 33% with one bound
    and all rows with none.
- `prehnite.selectivity` provides per-predicate selectivity estimates:
  - `equality_selectivity`, `not_equal_selectivity`, `null_selectivity` and
    `range_selectivity` use a column's `ColumnStats` when they are given.
    Without statistics they fall back to defaults: 0.10 for equality and
    IS NULL, and one third for range comparisons.
  - `and_selectivity`, `or_selectivity`, `not_selectivity` and
    `in_list_selectivity` combine estimates.
  - `Comparison` names the range operators. `Comparison.flipped()` swaps
    the operands.
- `prehnite.annotate` turns a rendered plan into `EXPLAIN ANALYZE` output.
  A rendered plan has one operator per line, two-space indentation and a
  `(rows: N)` suffix on each line.
  - `annotate_lines` adds `, actual: N` to each operator line using an
    `OperatorActuals`.
  - `annotate_root_with_actual` annotates only the first estimate line.
  - `annotate_plan` does either, depending on whether actuals are given,
    and then appends an `Execution time: X.XXX ms` footer taken from
    `AnalyzeStats`.

## Example

```python
from prehnite.codec import encode_row, decode_row
from prehnite.indexkey import encode_index_value, prefix_upper_bound
from prehnite.estimates import scale_rows

data = encode_row(42, 0, [-7, "hello", None, True, 2.5])
record = decode_row(data, 5)
assert record.tx_min == 42 and record.values == [-7, "hello", None, True, 2.5]

assert encode_index_value(-1) < encode_index_value(0) < encode_index_value(1)
assert prefix_upper_bound(b"\x01\xff") == b"\x02"

assert scale_rows(100, 0.001) == 1
```

## What it does not do

This package has no storage engine. It has no pager, B+tree, write-ahead
log or catalog, and it provides no SQL parser, planner, executor or server.
It encodes and decodes the byte strings that such a storage layer would
hold, and it computes estimates for plans. It does not render a plan tree
from a query: the annotation functions expect plan text that has already
been rendered.

## Running the tests

```
pip install -e ".[test]"
pytest
```