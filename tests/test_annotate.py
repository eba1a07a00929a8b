from datetime import timedelta

import pytest

from prehnite.annotate import (
    AnalyzeStats,
    OperatorActuals,
    annotate_lines,
    annotate_plan,
    annotate_root_with_actual,
)

SIMPLE_PLAN = (
    "Limit  (limit=5)  (rows: 5)\n"
    "  Project  (*)  (rows: 50)\n"
    "    Sort  (a ASC)  (rows: 50)\n"
    "      Filter  ((a > 5))  (rows: 50)\n"
    "        SeqScan t  (rows: 150)\n"
)

GROUPED_PLAN = (
    "Limit  (limit=3)  (rows: 3)\n"
    "  Project  (a, COUNT(*))  (rows: 10)\n"
    "    Sort  (a ASC)  (rows: 10)\n"
    "      Having  ((a > 1))  (rows: 10)\n"
    "        HashAggregate  group by a  (rows: 10)\n"
    "          Filter  ((a > 0))  (rows: 100)\n"
    "            SeqScan t  (rows: 300)\n"
)

JOIN_PLAN = (
    "Project  (*)  (rows: 10)\n"
    "  InnerJoin  on (a.id = c.id)  (rows: 10)\n"
    "    LeftJoin  on (a.id = b.id)  (rows: 10)\n"
    "      SeqScan a  (rows: 10)\n"
    "      SeqScan b  (rows: 10)\n"
    "    SeqScan c  (rows: 10)\n"
)


def test_each_operator_gets_its_own_count():
    actuals = OperatorActuals(base_scan=150, filter=40, sort=40, project=40, limit=5)
    lines = annotate_lines(SIMPLE_PLAN, actuals, 5).splitlines()
    assert lines[0].endswith(", actual: 5)")
    assert lines[1].endswith("(rows: 50, actual: 40)")
    assert lines[2].endswith("(rows: 50, actual: 40)")
    assert lines[3].endswith("(rows: 50, actual: 40)")
    assert lines[4].endswith("(rows: 150, actual: 150)")


def test_annotation_preserves_indentation_and_line_count():
    actuals = OperatorActuals(base_scan=1, filter=2, sort=3, project=4, limit=5)
    result = annotate_lines(SIMPLE_PLAN, actuals, 5)
    original = SIMPLE_PLAN.splitlines()
    annotated = result.splitlines()
    assert len(annotated) == len(original)
    for before, after in zip(original, annotated):
        assert after.startswith(before[:-1])
    assert result.endswith("\n")


def test_missing_slots_leave_lines_untouched():
    actuals = OperatorActuals(base_scan=150, project=40)
    lines = annotate_lines(SIMPLE_PLAN, actuals, 40).splitlines()
    original = SIMPLE_PLAN.splitlines()
    assert lines[0] == original[0]
    assert lines[2] == original[2]
    assert lines[3] == original[3]
    assert lines[1].endswith(", actual: 40)")
    assert lines[4].endswith(", actual: 150)")


def test_grouped_output_covers_post_aggregation_operators():
    actuals = OperatorActuals(
        base_scan=300, filter=90, sort=999, project=999, limit=999, grouped_output=3
    )
    lines = annotate_lines(GROUPED_PLAN, actuals, 3).splitlines()
    for line in lines[:5]:
        assert line.endswith(", actual: 3)")
    assert lines[5].endswith(", actual: 90)")
    assert lines[6].endswith(", actual: 300)")
    assert "999" not in "\n".join(lines)


def test_joins_take_counts_in_reverse_build_order_and_scans_in_build_order():
    actuals = OperatorActuals(
        base_scan=11,
        join_outputs=[21, 22],
        join_right_scans=[31, 32],
        project=22,
    )
    lines = annotate_lines(JOIN_PLAN, actuals, 22).splitlines()
    assert lines[1].lstrip().startswith("InnerJoin")
    assert lines[1].endswith(", actual: 22)")
    assert lines[2].endswith(", actual: 21)")
    assert lines[3].endswith(", actual: 11)")
    assert lines[4].endswith(", actual: 31)")
    assert lines[5].endswith(", actual: 32)")


def test_index_nested_loop_join_leaves_right_scan_unannotated():
    actuals = OperatorActuals(
        base_scan=11, join_outputs=[21, 22], join_right_scans=[None, 32], project=22
    )
    lines = annotate_lines(JOIN_PLAN, actuals, 22).splitlines()
    assert lines[4] == JOIN_PLAN.splitlines()[4]
    assert lines[5].endswith(", actual: 32)")


def test_unrecognised_plan_falls_back_to_root_total():
    text = "Insert t  (rows: 3)\n"
    result = annotate_lines(text, OperatorActuals(), 3)
    assert result == "Insert t  (rows: 3, actual: 3)\n"


def test_no_matching_counters_falls_back_to_root_total():
    result = annotate_lines(SIMPLE_PLAN, OperatorActuals(), 7)
    lines = result.splitlines()
    assert lines[0].endswith("(rows: 5, actual: 7)")
    assert lines[1:] == SIMPLE_PLAN.splitlines()[1:]


def test_root_annotation_only_touches_first_estimate_line():
    text = "Update t  (set a)\n  SeqScan t  (rows: 9)\n  SeqScan u  (rows: 9)\n"
    lines = annotate_root_with_actual(text, 4).splitlines()
    assert lines[0] == "Update t  (set a)"
    assert lines[1].endswith("(rows: 9, actual: 4)")
    assert lines[2] == "  SeqScan u  (rows: 9)"


def test_root_annotation_appends_line_when_no_estimate():
    assert annotate_root_with_actual("Vacuum\n", 4) == "Vacuum\n(actual: 4)\n"


def test_line_without_trailing_newline_is_not_spliced():
    text = "SeqScan t  (rows: 3)"
    result = annotate_lines(text, OperatorActuals(base_scan=3), 3)
    assert result.startswith(text)
    assert result.endswith("(actual: 3)\n")
    assert ", actual:" not in result


def test_annotate_plan_adds_execution_time_footer():
    stats = AnalyzeStats(actual_rows=5, elapsed=timedelta(milliseconds=1.5))
    actuals = OperatorActuals(base_scan=150, filter=40, sort=40, project=40, limit=5)
    result = annotate_plan(SIMPLE_PLAN, stats, actuals)
    assert result.endswith("Execution time: 1.500 ms\n")
    body = result[: -len("Execution time: 1.500 ms\n")]
    assert body == annotate_lines(SIMPLE_PLAN, actuals, 5)


def test_annotate_plan_without_actuals_uses_root_total():
    stats = AnalyzeStats(actual_rows=12, elapsed=timedelta(0))
    result = annotate_plan(SIMPLE_PLAN, stats)
    lines = result.splitlines()
    assert lines[0].endswith(", actual: 12)")
    assert lines[1:5] == SIMPLE_PLAN.splitlines()[1:]
    assert lines[-1] == "Execution time: 0.000 ms"


@pytest.mark.parametrize("count", [0, 1, 1_000_000])
def test_counts_are_rendered_verbatim(count):
    result = annotate_root_with_actual("SeqScan t  (rows: 1)\n", count)
    assert result == f"SeqScan t  (rows: 1, actual: {count})\n"