from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from ..db.batch_upsert import BatchUpsertError, batch_upsert
from ..db.sync_metadata import load_sync_state, mark_sync_failed, save_sync_state, touch_sync_state
from ..models.sync_state import SyncResult
from ..sheets.google_sheets import GoogleSheetsSource
from .orchestrator import chunked, clean_rows
from .progress import ProgressTracker

"""Incremental Google Sheets -> tracker table sync.

The sheet is append-only: rows up to ``last_synced_row_count`` are already
stored, so a run only cleans and upserts the rows after that offset. Each
batch runs under a savepoint; a failed batch counts its rows as errors and the
run finishes as ``partial``.

The row count and the new rows are two reads of the sheet, so rows appended
in between are upserted now and read again by the next run; the row hash
keeps that idempotent.
"""

__all__ = [
    "DEFAULT_SYNC_SOURCE",
    "SyncError",
    "sync_google_sheets",
]

logger = logging.getLogger(__name__)

DEFAULT_SYNC_SOURCE = "google_sheets"


class SyncError(Exception):
    pass


def _upsert_batches(cursor: Any, table: str, records: list[dict[str, Any]], batch_size: int) -> tuple[int, int]:
    synced = 0
    errors = 0
    with ProgressTracker(len(records), description="Syncing rows", unit="row") as progress:
        for batch in chunked(records, batch_size):
            cursor.execute("SAVEPOINT sync_batch")
            try:
                result = batch_upsert(cursor, table, batch, page_size=batch_size)
            except BatchUpsertError as e:
                cursor.execute("ROLLBACK TO SAVEPOINT sync_batch")
                logger.error("batch of %d rows failed: %s", len(batch), e)
                errors += len(batch)
            else:
                cursor.execute("RELEASE SAVEPOINT sync_batch")
                synced += result.upserted_rows
            progress.advance(len(batch))
    return synced, errors


def sync_google_sheets(
    source: GoogleSheetsSource,
    cursor: Any,
    *,
    table: str = "tracker_raw",
    sync_source: str = DEFAULT_SYNC_SOURCE,
    batch_size: int = 500,
) -> SyncResult:
    """Sync rows appended to the sheet since the last run.

    Args:
        source: Sheet to read
        cursor: Database cursor (autocommit connection)
        table: Target table
        sync_source: Key of the sync_metadata row
        batch_size: Rows per upsert statement

    Returns:
        SyncResult for the run

    Raises:
        SyncError: Fetching, cleaning or state handling failed. Marking the
            sync_metadata row ``failed`` is attempted first; if that fails
            too it is logged and the original error is still raised.
    """
    try:
        cursor.execute("BEGIN")
        state = load_sync_state(cursor, sync_source)
        last_synced = state.last_synced_row_count

        total_rows = source.row_count()
        logger.info("sync_source=%s sheet_rows=%d last_synced=%d", sync_source, total_rows, last_synced)

        if total_rows <= last_synced:
            touch_sync_state(cursor, sync_source, datetime.now(UTC))
            cursor.execute("COMMIT")
            return SyncResult(
                total_rows_in_sheet=total_rows,
                last_synced_count=last_synced,
                new_rows_fetched=0,
                rows_synced=0,
                errors=0,
                message="No new rows to sync",
            )

        raw_rows = source.fetch_new_rows(last_synced)
        records, null_dates = clean_rows(raw_rows)
        logger.info("fetched=%d null_dates=%d", len(records), null_dates)

        synced, errors = _upsert_batches(cursor, table, records, batch_size)

        save_sync_state(
            cursor,
            state.advance(row_count=total_rows, synced=synced, errors=errors, at=datetime.now(UTC)),
        )
        cursor.execute("COMMIT")
    except Exception as e:
        logger.error("sync failed: %s", e)
        try:
            cursor.execute("ROLLBACK")
        except Exception:
            logger.exception("rollback failed")
        try:
            mark_sync_failed(cursor, sync_source, str(e), datetime.now(UTC))
        except Exception:
            logger.exception("failed to record sync failure")
        raise SyncError(str(e)) from e

    if errors:
        logger.warning("synced %d/%d rows, %d failed", synced, len(records), errors)
    return SyncResult(
        total_rows_in_sheet=total_rows,
        last_synced_count=last_synced,
        new_rows_fetched=len(records),
        rows_synced=synced,
        errors=errors,
        message=f"Successfully synced {synced} new rows",
    )
