from __future__ import annotations

from ..models.processing_result import ProcessingResult
from ..models.sync_state import SyncResult

"""SUMMARY line rendering for import and sync runs.

Import:
    SUMMARY files={total}/{total} success={s} failed={f} rows={rows}
    null_dates={n} elapsed_sec={elapsed} throughput_rps={throughput}
Sync:
    SUMMARY sheet_rows={total} last_synced={last} fetched={new}
    synced={synced} errors={errors}
"""

__all__ = [
    "format_number",
    "render_summary_line",
    "render_sync_summary_line",
]


def format_number(value: float) -> str:
    """Render a metric without trailing ``.0`` or scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(total_files: int, result: ProcessingResult) -> str:
    """Render the SUMMARY line of an import run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_files=1, failed_files=0, total_upserted_rows=1000,
        ...     total_null_dates=3, start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, throughput_rows_per_sec=500.0
        ... )
        >>> render_summary_line(1, result)
        'SUMMARY files=1/1 success=1 failed=0 rows=1000 null_dates=3 elapsed_sec=2 throughput_rps=500'
    """
    return (
        f"SUMMARY files={total_files}/{total_files} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"rows={result.total_upserted_rows} "
        f"null_dates={result.total_null_dates} "
        f"elapsed_sec={format_number(result.elapsed_seconds)} "
        f"throughput_rps={format_number(result.throughput_rows_per_sec)}"
    )


def render_sync_summary_line(result: SyncResult) -> str:
    return (
        f"SUMMARY sheet_rows={result.total_rows_in_sheet} "
        f"last_synced={result.last_synced_count} "
        f"fetched={result.new_rows_fetched} "
        f"synced={result.rows_synced} "
        f"errors={result.errors}"
    )
