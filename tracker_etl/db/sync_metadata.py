from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import psycopg2

from ..models.sync_state import SyncState, SyncStatus

"""sync_metadata table access.

One row per sync source::

    sync_source            text primary key
    last_synced_row_count  integer
    last_sync_timestamp    timestamptz
    last_sync_status       text  -- success | partial | failed
    last_sync_error        text
    total_rows_synced      integer
"""

__all__ = [
    "SYNC_TABLE",
    "SyncStateError",
    "load_sync_state",
    "mark_sync_failed",
    "save_sync_state",
    "touch_sync_state",
]

logger = logging.getLogger(__name__)

SYNC_TABLE = "sync_metadata"

_COLUMNS = (
    "sync_source",
    "last_synced_row_count",
    "last_sync_timestamp",
    "last_sync_status",
    "last_sync_error",
    "total_rows_synced",
)


class SyncStateError(Exception):
    pass


def _status(value: Any) -> SyncStatus | None:
    if value is None:
        return None
    try:
        return SyncStatus(value)
    except ValueError:
        logger.warning("unknown last_sync_status=%r ignored", value)
        return None


def load_sync_state(cursor: Any, sync_source: str) -> SyncState:
    """Load the state of ``sync_source``; a never-synced source starts at 0."""
    try:
        cursor.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM {SYNC_TABLE} WHERE sync_source = %s",
            (sync_source,),
        )
        row = cursor.fetchone()
    except psycopg2.Error as e:
        raise SyncStateError(f"failed to fetch sync metadata: {e}") from e

    if row is None:
        return SyncState(sync_source=sync_source)
    return SyncState(
        sync_source=row[0],
        last_synced_row_count=row[1] or 0,
        last_sync_timestamp=row[2],
        last_sync_status=_status(row[3]),
        last_sync_error=row[4],
        total_rows_synced=row[5] or 0,
    )


def save_sync_state(cursor: Any, state: SyncState) -> None:
    """Insert or replace the row for ``state.sync_source``."""
    updates = ", ".join(f"{c} = EXCLUDED.{c}" for c in _COLUMNS[1:])
    sql = (
        f"INSERT INTO {SYNC_TABLE} ({', '.join(_COLUMNS)}) VALUES (%s, %s, %s, %s, %s, %s) "
        f"ON CONFLICT (sync_source) DO UPDATE SET {updates}"
    )
    params = (
        state.sync_source,
        state.last_synced_row_count,
        state.last_sync_timestamp,
        state.last_sync_status.value if state.last_sync_status else None,
        state.last_sync_error,
        state.total_rows_synced,
    )
    try:
        cursor.execute(sql, params)
    except psycopg2.Error as e:
        raise SyncStateError(f"failed to save sync metadata: {e}") from e


def touch_sync_state(cursor: Any, sync_source: str, at: datetime) -> None:
    """Stamp a successful run that found nothing new."""
    try:
        cursor.execute(
            f"UPDATE {SYNC_TABLE} SET last_sync_timestamp = %s, last_sync_status = %s "
            "WHERE sync_source = %s",
            (at, SyncStatus.SUCCESS.value, sync_source),
        )
    except psycopg2.Error as e:
        raise SyncStateError(f"failed to update sync metadata: {e}") from e


def mark_sync_failed(cursor: Any, sync_source: str, message: str, at: datetime) -> None:
    """Record a failed run. Errors here are logged, never raised."""
    try:
        cursor.execute(
            f"UPDATE {SYNC_TABLE} SET last_sync_timestamp = %s, last_sync_status = %s, "
            "last_sync_error = %s WHERE sync_source = %s",
            (at, SyncStatus.FAILED.value, message, sync_source),
        )
    except psycopg2.Error:
        logger.exception("failed to record sync failure for %s", sync_source)
