"""Domain models for the Tracker ETL.

Configuration, per-workbook import state, run results and sync state.
"""

from .config_models import AssetConfig, DatabaseConfig, GoogleSheetsConfig, ImportConfig
from .error_record import ErrorRecord
from .processing_result import FileStat, ProcessingResult
from .sync_state import SyncResult, SyncState, SyncStatus
from .workbook import FileStatus, Workbook

__all__ = [
    # Configuration models
    "AssetConfig",
    "DatabaseConfig",
    "GoogleSheetsConfig",
    "ImportConfig",
    # Processing models
    "ErrorRecord",
    "FileStat",
    "FileStatus",
    "ProcessingResult",
    "Workbook",
    # Sync models
    "SyncResult",
    "SyncState",
    "SyncStatus",
]
