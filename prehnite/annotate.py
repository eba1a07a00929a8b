"""EXPLAIN ANALYZE annotation: splice observed row counts into a rendered plan.

A rendered plan has one operator per line, children indented two spaces
below their parent, each line ending in a ``(rows: N)`` estimate. Annotation
inserts ``, actual: N`` before the closing parenthesis of every operator line
for which an observed count is known.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterator, List, Optional

_GROUPED_ONLY = ("Having", "HashAggregate", "Aggregate")
_JOINS = ("InnerJoin", "LeftJoin", "CrossJoin", "SemiJoin", "AntiJoin")
_SCANS = ("SeqScan", "IndexScan")


@dataclass(frozen=True)
class AnalyzeStats:
    """Totals observed while running a statement: rows yielded and wall-clock time."""

    actual_rows: int
    elapsed: timedelta


@dataclass
class OperatorActuals:
    """Observed row counts per plan operator.

    ``None`` marks an operator that did not appear in the plan. Join slots
    are indexed in build order (innermost join first). ``grouped_output`` is
    one count shared by every operator above a grouped aggregation.
    """

    base_scan: Optional[int] = None
    join_outputs: List[int] = field(default_factory=list)
    join_right_scans: List[Optional[int]] = field(default_factory=list)
    filter: Optional[int] = None
    sort: Optional[int] = None
    project: Optional[int] = None
    limit: Optional[int] = None
    grouped_output: Optional[int] = None


def _lines_with_ends(text: str) -> Iterator[str]:
    """Split on newlines, keeping each terminator with its line."""
    start = 0
    while start < len(text):
        end = text.find("\n", start)
        if end == -1:
            yield text[start:]
            return
        yield text[start:end + 1]
        start = end + 1


class _Matcher:
    """Assigns observed counts to operator lines in the order they are rendered."""

    def __init__(self, actuals: OperatorActuals) -> None:
        self._actuals = actuals
        self._grouped = actuals.grouped_output is not None
        self._joins_seen = 0
        self._scans_seen = 0

    def _post_aggregate(self, own: Optional[int]) -> Optional[int]:
        return self._actuals.grouped_output if self._grouped else own

    def _next_join(self) -> Optional[int]:
        outputs = self._actuals.join_outputs
        # Joins render outermost first, the reverse of build order.
        seen = self._joins_seen
        self._joins_seen += 1
        return outputs[len(outputs) - 1 - seen] if seen < len(outputs) else None

    def _next_scan(self) -> Optional[int]:
        seen = self._scans_seen
        self._scans_seen += 1
        if seen == 0:
            return self._actuals.base_scan
        right = self._actuals.join_right_scans
        return right[seen - 1] if seen - 1 < len(right) else None

    def actual_for(self, line: str) -> Optional[int]:
        head = line.lstrip()
        if head.startswith("Limit"):
            return self._post_aggregate(self._actuals.limit)
        if head.startswith("Project"):
            return self._post_aggregate(self._actuals.project)
        if head.startswith("Sort"):
            return self._post_aggregate(self._actuals.sort)
        if head.startswith(_GROUPED_ONLY):
            return self._actuals.grouped_output
        if head.startswith("Filter"):
            return self._actuals.filter
        if head.startswith(_JOINS):
            return self._next_join()
        if head.startswith(_SCANS):
            return self._next_scan()
        return None


def annotate_lines(text: str, actuals: OperatorActuals, root_total: int) -> str:
    """Annotate every recognised operator line with its observed count.

    If no line could be annotated, fall back to annotating the first
    estimate line with `root_total`.
    """
    matcher = _Matcher(actuals)
    pieces: List[str] = []
    annotated_any = False
    for line in _lines_with_ends(text):
        actual = matcher.actual_for(line)
        if actual is not None and line.endswith(")\n"):
            pieces.append(f"{line[:-2]}, actual: {actual})\n")
            annotated_any = True
        else:
            pieces.append(line)
    if not annotated_any:
        return annotate_root_with_actual(text, root_total)
    return "".join(pieces)


def annotate_root_with_actual(text: str, actual: int) -> str:
    """Annotate the first ``(rows: ...)`` line with `actual`.

    When no line carries an estimate, a ``(actual: N)`` line is appended.
    """
    pieces: List[str] = []
    annotated = False
    for line in _lines_with_ends(text):
        if not annotated and line.endswith(")\n") and "(rows: " in line[:-2]:
            pieces.append(f"{line[:-2]}, actual: {actual})\n")
            annotated = True
        else:
            pieces.append(line)
    if not annotated:
        pieces.append(f"(actual: {actual})\n")
    return "".join(pieces)


def annotate_plan(
    text: str,
    stats: AnalyzeStats,
    actuals: Optional[OperatorActuals] = None,
) -> str:
    """Turn a rendered plan into EXPLAIN ANALYZE output with an execution-time footer.

    With per-operator `actuals` every operator line is annotated; without
    them only the root line is, using the total in `stats`.
    """
    if actuals is not None:
        annotated = annotate_lines(text, actuals, stats.actual_rows)
    else:
        annotated = annotate_root_with_actual(text, stats.actual_rows)
    ms = stats.elapsed.total_seconds() * 1000.0
    return f"{annotated}Execution time: {ms:.3f} ms\n"