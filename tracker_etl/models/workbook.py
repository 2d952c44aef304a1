from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

"""Workbook domain model and FileStatus enum.

A Workbook tracks one .xlsx file through the import:
pending -> processing -> (success | failed).
"""


class FileStatus(Enum):
    """Lifecycle of a workbook import.

    - PENDING: discovered, not yet read
    - PROCESSING: rows are being cleaned and upserted
    - SUCCESS: all rows upserted and the transaction committed
    - FAILED: read/upsert/commit failed and the transaction rolled back
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class Workbook:
    """Processing context for a single workbook."""
    path: Path
    name: str
    sheet_name: str | None = None  # Actual sheet name matched in the workbook
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: FileStatus = FileStatus.PENDING
    total_rows: int = 0  # Data rows read from the sheet
    upserted_rows: int = 0
    null_dates: int = 0
    error: str | None = None  # Failure reason summary

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()
