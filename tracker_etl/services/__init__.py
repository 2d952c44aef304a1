from .assets import SeedError, SeedResult, seed_assets
from .orchestrator import ProcessingError, clean_rows, import_files, scan_excel_files
from .progress import ProgressTracker
from .statistics import StatisticsError, TableStatistics, fetch_table_statistics
from .summary import render_summary_line, render_sync_summary_line
from .sync import SyncError, sync_google_sheets

__all__ = [
    "ProcessingError",
    "ProgressTracker",
    "SeedError",
    "SeedResult",
    "StatisticsError",
    "SyncError",
    "TableStatistics",
    "clean_rows",
    "fetch_table_statistics",
    "import_files",
    "render_summary_line",
    "render_sync_summary_line",
    "scan_excel_files",
    "seed_assets",
    "sync_google_sheets",
]
