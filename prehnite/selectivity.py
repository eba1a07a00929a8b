"""Predicate selectivity estimates: the fraction of rows a predicate keeps.

When a column has statistics gathered by ANALYZE they sharpen the estimate;
without them the coarse defaults apply: 0.10 for equality and IS NULL, one
third for a range comparison.
"""

from __future__ import annotations

import enum
from typing import Optional

from prehnite.estimates import interpolate
from prehnite.indexkey import encode_index_value
from prehnite.schema import ColumnStats, Value

DEFAULT_EQUALITY = 0.10
DEFAULT_IS_NULL = 0.10
DEFAULT_RANGE = 1.0 / 3.0
IN_LIST_PER_VALUE = 0.10


class Comparison(enum.Enum):
    """A range comparison with the column on its left-hand side."""

    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    def flipped(self) -> "Comparison":
        """The comparison with its operands swapped: `a < b` is `b > a`."""
        return _FLIPPED[self]


_FLIPPED = {
    Comparison.LT: Comparison.GT,
    Comparison.LE: Comparison.GE,
    Comparison.GT: Comparison.LT,
    Comparison.GE: Comparison.LE,
}


def _equality_from_stats(stats: Optional[ColumnStats]) -> Optional[float]:
    if stats is None:
        return None
    non_null = max(stats.total_rows - stats.null_count, 0)
    if non_null == 0 or stats.n_distinct == 0:
        return None
    # NULL never satisfies `=`, so scale by the non-NULL fraction.
    return (1.0 / stats.n_distinct) * (non_null / stats.total_rows)


def equality_selectivity(stats: Optional[ColumnStats]) -> float:
    """Selectivity of `column = literal`: 1 / n_distinct over the non-NULL rows."""
    estimate = _equality_from_stats(stats)
    return DEFAULT_EQUALITY if estimate is None else estimate


def not_equal_selectivity(stats: Optional[ColumnStats]) -> float:
    """Selectivity of `column <> literal`: the complement of equality."""
    return 1.0 - equality_selectivity(stats)


def null_selectivity(stats: Optional[ColumnStats], negated: bool = False) -> float:
    """Selectivity of `column IS NULL`, or of `IS NOT NULL` when `negated`."""
    if stats is None or stats.total_rows == 0:
        fraction = DEFAULT_IS_NULL
    else:
        fraction = stats.null_count / stats.total_rows
    return 1.0 - fraction if negated else fraction


def _bucket_fraction(op: Comparison, lo: bytes, hi: bytes, lit: bytes) -> float:
    if op in (Comparison.LT, Comparison.LE):
        if lit < lo:
            return 0.0
        if (op is Comparison.LE and lit >= hi) or (op is Comparison.LT and lit > hi):
            return 1.0
        return interpolate(lo, hi, lit)
    if lit > hi:
        return 0.0
    if (op is Comparison.GE and lit <= lo) or (op is Comparison.GT and lit < lo):
        return 1.0
    return 1.0 - interpolate(lo, hi, lit)


def range_selectivity(stats: Optional[ColumnStats], op: Comparison, literal: Value) -> float:
    """Selectivity of `column <op> literal`, walking the equi-depth histogram.

    Buckets wholly on one side of the literal count fully or not at all; a
    straddling bucket contributes a linearly interpolated share.
    """
    if not isinstance(op, Comparison):
        raise ValueError(f"{op!r} is not a range comparison")
    if stats is None or not stats.histogram or stats.total_rows == 0:
        return DEFAULT_RANGE
    if literal is None:
        return 0.0
    lit_key = encode_index_value(literal)
    if sum(bucket.count for bucket in stats.histogram) == 0:
        return 0.0
    matched = sum(
        bucket.count
        * _bucket_fraction(
            op,
            encode_index_value(bucket.lower),
            encode_index_value(bucket.upper),
            lit_key,
        )
        for bucket in stats.histogram
    )
    return matched / stats.total_rows


def and_selectivity(left: float, right: float) -> float:
    """Conjunction under the independence assumption."""
    return left * right


def or_selectivity(left: float, right: float) -> float:
    """Disjunction under the independence assumption."""
    return 1.0 - (1.0 - left) * (1.0 - right)


def not_selectivity(inner: float) -> float:
    """Negation, never below zero."""
    return max(1.0 - inner, 0.0)


def in_list_selectivity(count: int) -> float:
    """`IN (v1, ..., vn)`: each value is a hit at the equality default, capped at 1."""
    return min(count * IN_LIST_PER_VALUE, 1.0)