from __future__ import annotations

import doctest
from datetime import UTC, datetime

import pytest

import tracker_etl.services.summary as summary
from tracker_etl.models.processing_result import ProcessingResult
from tracker_etl.models.sync_state import SyncResult
from tracker_etl.services.summary import format_number, render_summary_line, render_sync_summary_line


def _result(**overrides) -> ProcessingResult:
    values = dict(
        success_files=2,
        failed_files=1,
        total_upserted_rows=1500,
        total_null_dates=7,
        start_time=datetime(2024, 1, 1, 10, 0, 0, tzinfo=UTC),
        end_time=datetime(2024, 1, 1, 10, 0, 3, tzinfo=UTC),
        elapsed_seconds=3.0,
        throughput_rows_per_sec=500.0,
    )
    values.update(overrides)
    return ProcessingResult(**values)


def test_render_summary_line():
    assert render_summary_line(3, _result()) == (
        "SUMMARY files=3/3 success=2 failed=1 rows=1500 null_dates=7 elapsed_sec=3 throughput_rps=500"
    )


def test_render_summary_line_fractional_metrics():
    line = render_summary_line(1, _result(elapsed_seconds=1.25, throughput_rows_per_sec=1200.5))
    assert "elapsed_sec=1.25" in line
    assert "throughput_rps=1200.5" in line


def test_render_summary_line_zero_files():
    line = render_summary_line(
        0, _result(success_files=0, failed_files=0, total_upserted_rows=0, total_null_dates=0,
                   elapsed_seconds=0.0, throughput_rows_per_sec=0.0)
    )
    assert line == "SUMMARY files=0/0 success=0 failed=0 rows=0 null_dates=0 elapsed_sec=0 throughput_rps=0"


def test_render_sync_summary_line():
    result = SyncResult(
        total_rows_in_sheet=120, last_synced_count=100, new_rows_fetched=20, rows_synced=19, errors=1,
        message="Successfully synced 19 new rows",
    )
    assert render_sync_summary_line(result) == (
        "SUMMARY sheet_rows=120 last_synced=100 fetched=20 synced=19 errors=1"
    )


@pytest.mark.parametrize(
    "value,expected",
    [(0, "0"), (0.0, "0"), (42.0, "42"), (2.5, "2.5"), (0.001234, "0.001234"), (0.0000001, "0")],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_summary_doctests():
    failures, _ = doctest.testmod(summary)
    assert failures == 0
