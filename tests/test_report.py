"""
tests/test_report.py

CSV export of plans and results, and the text summaries.
"""

from __future__ import annotations

import pandas as pd

from conftest import make_item
from favsort.models import (
    CollectedSource,
    CreatedCollection,
    ExecutionResult,
    MigrationPlan,
    MoveFailure,
    SourceCollection,
)
from favsort.planner.grouping import build_chunks, group_by_creator
from favsort.report import plan_frame, result_frames, write_report


def _plan() -> MigrationPlan:
    items = (make_item("1", "X", 5), make_item("2", "Y", 3), make_item("3", "X", 9))
    groups = group_by_creator(items)
    return MigrationPlan(
        base_name="ABC",
        capacity=2,
        sources=(CollectedSource(SourceCollection("100", "src"), items, 3),),
        groups=tuple(groups),
        chunks=tuple(build_chunks(groups, 2)),
    )


def _result() -> ExecutionResult:
    return ExecutionResult(
        success_count=2,
        failures=(MoveFailure(make_item("2", "Y", 3), "move failed 3 times", "ABC-2"),),
        created_collections=(CreatedCollection("ABC-1", "901", 2), CreatedCollection("ABC-2", "902", 1)),
        total_items=3,
    )


def test_plan_frame_rows_follow_display_order() -> None:
    df = plan_frame(_plan())
    assert list(df["item_id"]) == ["3", "1", "2"]
    assert list(df["chunk"]) == [1, 1, 2]
    assert list(df["position"]) == [1, 2, 1]


def test_result_frames() -> None:
    frames = result_frames(_result())
    assert list(frames["collections"]["name"]) == ["ABC-1", "ABC-2"]
    assert list(frames["failures"]["item_id"]) == ["2"]


def test_empty_failures_frame_keeps_columns() -> None:
    frames = result_frames(ExecutionResult(total_items=0))
    assert frames["failures"].empty
    assert "reason" in frames["failures"].columns


def test_write_report_round_trip(tmp_path) -> None:
    paths = write_report(tmp_path / "out", _plan(), _result())
    assert sorted(p.name for p in paths) == ["collections.csv", "failures.csv", "plan.csv"]
    failures = pd.read_csv(tmp_path / "out" / "failures.csv", dtype=str)
    assert failures.loc[0, "collection_name"] == "ABC-2"


def test_result_summary() -> None:
    text = _result().summary()
    assert text.startswith("Done: 2/3 moved, 1 failed.")
    assert "ABC-1(id=901, 2 items)" in text
