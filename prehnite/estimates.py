"""Cardinality arithmetic used when rendering query plans.

The numbers here are deliberately coarse: they are meant to expose
order-of-magnitude mistakes in a plan, not to act as a real cost model.
"""

from __future__ import annotations

import math

_WINDOW = 8


def scale_rows(rows: int, selectivity: float) -> int:
    """Multiply a row count by a selectivity in [0, 1].

    The product is rounded to the nearest integer, halves away from zero, so
    floating-point noise from chained products does not push it up a row. A
    non-zero selectivity never yields zero rows: an unbounded predicate should
    not read as a guarantee of an empty result.
    """
    if rows == 0 or math.isnan(selectivity):
        return 0
    fraction = min(max(selectivity, 0.0), 1.0)
    scaled = math.floor(rows * fraction + 0.5)
    if scaled == 0 and fraction > 0.0:
        return 1
    return scaled


def group_rows_estimate(input_rows: int, key_columns: int) -> int:
    """Expected number of groups from a GROUP BY: ceil(sqrt(input)), capped by input.

    Without distinct-value statistics the number of key columns does not
    change the guess.
    """
    del key_columns
    if input_rows == 0:
        return 0
    root = math.ceil(math.sqrt(float(input_rows)))
    return min(max(root, 1), input_rows)


def interpolate(lo: bytes, hi: bytes, lit: bytes) -> float:
    """Where `lit` falls between `lo` and `hi`, as a fraction in [0, 1].

    All three are order-preserving byte encodings. Bytes past the end of a
    shorter string count as zero. The shared prefix is skipped and at most
    the next eight bytes are read as big-endian numbers. A bucket whose upper
    bound does not exceed its lower bound yields 0.5.
    """
    width = max(len(lo), len(hi), len(lit))
    if width == 0:
        return 0.0
    lo, hi, lit = (bytes(s).ljust(width, b"\x00") for s in (lo, hi, lit))
    start = next(
        (pos for pos, (l, h, m) in enumerate(zip(lo, hi, lit)) if l != h or l != m),
        width,
    )
    take = min(width - start, _WINDOW)
    if take == 0:
        return 0.0
    low, high, mid = (
        int.from_bytes(s[start:start + take], "big") for s in (lo, hi, lit)
    )
    if high <= low:
        return 0.5
    fraction = max(mid - low, 0) / (high - low)
    return min(max(fraction, 0.0), 1.0)


def index_scan_rows(row_count: int, has_lower: bool, has_upper: bool) -> int:
    """Estimated rows returned by an index range scan over a table of `row_count` rows.

    Both bounds keep about 10%, one bound about 33%, and no bound the whole table.
    """
    if has_lower and has_upper:
        fraction = 0.10
    elif has_lower or has_upper:
        fraction = 0.33
    else:
        fraction = 1.0
    return math.ceil(row_count * fraction)