from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

"""Sync state models for the incremental Google Sheets sync.

SyncState mirrors one ``sync_metadata`` row. The sheet is append-only from the
sync's point of view: ``last_synced_row_count`` data rows are already stored,
so the next run fetches rows after that offset.
"""

__all__ = [
    "SyncResult",
    "SyncState",
    "SyncStatus",
]


class SyncStatus(Enum):
    SUCCESS = "success"
    PARTIAL = "partial"  # some rows failed to upsert
    FAILED = "failed"


@dataclass(frozen=True)
class SyncState:
    sync_source: str
    last_synced_row_count: int = 0
    last_sync_timestamp: datetime | None = None
    last_sync_status: SyncStatus | None = None
    last_sync_error: str | None = None
    total_rows_synced: int = 0

    def advance(self, *, row_count: int, synced: int, errors: int, at: datetime) -> SyncState:
        """Return the state after a completed run."""
        return replace(
            self,
            last_synced_row_count=row_count,
            last_sync_timestamp=at,
            last_sync_status=SyncStatus.SUCCESS if errors == 0 else SyncStatus.PARTIAL,
            last_sync_error=f"{errors} rows failed to sync" if errors else None,
            total_rows_synced=self.total_rows_synced + synced,
        )


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one sync run."""
    total_rows_in_sheet: int
    last_synced_count: int
    new_rows_fetched: int
    rows_synced: int
    errors: int
    message: str

    @property
    def success(self) -> bool:
        return self.errors == 0
