from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..cleaning.normalizers import is_missing
from ..cleaning.row_cleaner import COLUMN_ALIASES, clean_row, resolve_column
from ..db.batch_upsert import BatchMetrics, BatchUpsertError, batch_upsert
from ..excel.reader import (
    MissingColumnsError,
    SheetHeaderError,
    SheetNotFoundError,
    normalize_sheet,
    read_tracker_sheet,
)
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.error_record import UNKNOWN_ROW, ErrorRecord
from ..models.processing_result import BatchStatsAccumulator, FileStat, ProcessingResult
from ..models.workbook import FileStatus, Workbook
from .progress import ProgressTracker

"""Workbook import orchestration.

For every workbook: read the Tracker sheet, clean each row, upsert the
records in batches keyed on row_hash. Each workbook runs in its own
transaction; a failing workbook is rolled back, logged to the error log and
the run moves on to the next one.

``cursor=None`` runs everything except the database writes (mock mode).
"""

__all__ = [
    "KNOWN_COLUMNS",
    "ProcessingError",
    "chunked",
    "clean_rows",
    "import_files",
    "scan_excel_files",
]

logger = logging.getLogger(__name__)

FILE_LEVEL = "<FILE_LEVEL>"

# Every header label the row cleaner understands
KNOWN_COLUMNS = frozenset(label for aliases in COLUMN_ALIASES.values() for label in aliases)


class ProcessingError(Exception):
    """Fatal error that stops the whole run."""


def scan_excel_files(directory: Path) -> list[Path]:
    """Return the .xlsx files of ``directory`` (non-recursive, sorted).

    Office lock files (``~$name.xlsx``) are skipped.

    Raises:
        ProcessingError: If the directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    try:
        return sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix == ".xlsx" and not p.name.startswith("~$")
        )
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def clean_rows(raw_rows: Iterable[Mapping[str, Any]]) -> tuple[list[dict[str, Any]], int]:
    """Clean raw rows and count dates that were present but did not parse.

    Returns:
        (cleaned records, null_dates)
    """
    records: list[dict[str, Any]] = []
    null_dates = 0
    for raw in raw_rows:
        record = clean_row(raw)
        if record["date_iso"] is None and not is_missing(resolve_column(raw, COLUMN_ALIASES["date"])):
            null_dates += 1
        records.append(record)
    return records, null_dates


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _rollback(cursor: Any, source: str, error_log: ErrorLogBuffer) -> None:
    if cursor is None:
        return
    try:
        cursor.execute("ROLLBACK")
    except Exception as e:
        error_log.append(
            ErrorRecord.create(source, FILE_LEVEL, UNKNOWN_ROW, "TRANSACTION_ROLLBACK_ERROR", str(e))
        )


def _process_workbook(
    path: Path,
    config: ImportConfig,
    cursor: Any,
    error_log: ErrorLogBuffer,
    batch_stats: BatchStatsAccumulator,
) -> Workbook:
    """Import one workbook inside its own transaction."""
    start_time = datetime.now(UTC)

    def failed(error_type: str, sheet: str, e: Exception, sheet_name: str | None = None) -> Workbook:
        logger.error("file=%s %s: %s", path.name, error_type, e)
        error_log.append(ErrorRecord.create(path.name, sheet, UNKNOWN_ROW, error_type, str(e)))
        return Workbook(
            path=path,
            name=path.name,
            sheet_name=sheet_name,
            start_time=start_time,
            end_time=datetime.now(UTC),
            status=FileStatus.FAILED,
            error=str(e),
        )

    if cursor is not None:
        try:
            cursor.execute("BEGIN")
        except Exception as e:
            return failed("TRANSACTION_BEGIN_ERROR", FILE_LEVEL, e)

    sheet_name: str | None = None
    try:
        sheet_name, df = read_tracker_sheet(path, config.sheet_name, config.keep_na_strings)
        sheet = normalize_sheet(df, sheet_name, header_row=config.header_row, known_columns=KNOWN_COLUMNS)
        records, null_dates = clean_rows(sheet.rows)
        logger.debug("file=%s sheet=%s rows=%d null_dates=%d", path.name, sheet_name, len(records), null_dates)

        def on_batch(metrics: BatchMetrics) -> None:
            batch_stats.add_batch_time(metrics.elapsed_seconds)

        if cursor is not None:
            upserted = 0
            for batch in chunked(records, config.batch_size):
                result = batch_upsert(
                    cursor,
                    config.target_table,
                    batch,
                    page_size=config.batch_size,
                    metrics_callback=on_batch,
                )
                upserted += result.upserted_rows
            cursor.execute("COMMIT")
        else:
            upserted = len({r["row_hash"] for r in records})
            logger.debug("file=%s mock mode upserted_rows=%d", path.name, upserted)

    except (SheetNotFoundError, SheetHeaderError, MissingColumnsError) as e:
        _rollback(cursor, path.name, error_log)
        return failed("SHEET_VALIDATION_ERROR", sheet_name or FILE_LEVEL, e, sheet_name)
    except BatchUpsertError as e:
        _rollback(cursor, path.name, error_log)
        return failed("DATABASE_UPSERT_ERROR", sheet_name or FILE_LEVEL, e, sheet_name)
    except Exception as e:
        # unreadable workbook, commit failure, ...: the next workbook still runs
        _rollback(cursor, path.name, error_log)
        return failed("PROCESSING_ERROR", sheet_name or FILE_LEVEL, e, sheet_name)

    return Workbook(
        path=path,
        name=path.name,
        sheet_name=sheet_name,
        start_time=start_time,
        end_time=datetime.now(UTC),
        status=FileStatus.SUCCESS,
        total_rows=len(records),
        upserted_rows=upserted,
        null_dates=null_dates,
    )


def import_files(
    config: ImportConfig,
    files: Sequence[Path],
    cursor: Any = None,
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Import workbooks and aggregate the run metrics.

    Args:
        config: Import configuration (sheet name, header row, table, batch size)
        files: Workbooks to import, in order
        cursor: Database cursor (None = mock mode)
        error_log: Error buffer; a fresh one (flushed at the end) if omitted

    Returns:
        ProcessingResult with per-file stats
    """
    start_time = datetime.now(UTC)
    own_log = error_log is None
    log = ErrorLogBuffer() if error_log is None else error_log

    file_stats: list[FileStat] = []
    success_count = 0
    failed_count = 0
    total_rows = 0
    total_null_dates = 0

    with ProgressTracker(len(files), description="Importing workbooks") as progress:
        for path in files:
            progress.start(path.name)
            batch_stats = BatchStatsAccumulator()
            workbook = _process_workbook(path, config, cursor, log, batch_stats)

            if workbook.status == FileStatus.SUCCESS:
                success_count += 1
                total_rows += workbook.upserted_rows
                total_null_dates += workbook.null_dates
                logger.info(
                    "file=%s sheet=%s rows=%d upserted=%d null_dates=%d",
                    workbook.name,
                    workbook.sheet_name,
                    workbook.total_rows,
                    workbook.upserted_rows,
                    workbook.null_dates,
                )
            else:
                failed_count += 1

            progress.set_postfix(success=success_count, failed=failed_count, rows=total_rows)
            progress.advance()

            total_batches, avg_batch, p95_batch = batch_stats.get_stats()
            file_stats.append(
                FileStat(
                    file_name=workbook.name,
                    status=workbook.status.value,
                    upserted_rows=workbook.upserted_rows,
                    null_dates=workbook.null_dates,
                    elapsed_seconds=workbook.elapsed_seconds,
                    total_batches=total_batches,
                    avg_batch_seconds=avg_batch,
                    p95_batch_seconds=p95_batch,
                )
            )

    if own_log:
        try:
            path = log.flush()
        except OSError as e:
            logger.warning("failed to write error log: %s", e)
        else:
            if path is not None:
                logger.warning("errors written to %s", path)

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = total_rows / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        success_files=success_count,
        failed_files=failed_count,
        total_upserted_rows=total_rows,
        total_null_dates=total_null_dates,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        file_stats=file_stats,
    )
