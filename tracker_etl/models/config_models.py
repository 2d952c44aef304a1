from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the Tracker ETL.

Built by ``tracker_etl.config.loader`` from ``config/import.yml``; environment
variables (loaded from ``.env``) take precedence where noted.
"""

__all__ = [
    "AssetConfig",
    "DatabaseConfig",
    "GoogleSheetsConfig",
    "ImportConfig",
]

DEFAULT_KEEP_NA_STRINGS = ("NA", "N/A", "n/a")


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None
    sslmode: str | None = None  # Supabase requires "require"


@dataclass(frozen=True)
class GoogleSheetsConfig:
    """Google Sheets source used by the incremental sync."""
    spreadsheet_id: str | None = None
    range: str = "Tracker!A:Z"
    sync_source: str = "google_sheets"  # sync_metadata primary key


@dataclass(frozen=True)
class AssetConfig:
    """Asset seeding settings (one dim_assets row per sub-project).

    Descriptions are injected from config instead of living in code.
    """
    table: str = "dim_assets"
    descriptions: dict[str, str] = field(default_factory=dict)
    default_description: str | None = None

    def description_for(self, sub_project: str) -> str | None:
        return self.descriptions.get(sub_project, self.default_description)


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for import, sync and seeding."""
    source_directory: str  # Directory scanned for .xlsx workbooks
    sheet_name: str = "Tracker"  # Matched case-insensitively
    header_row: int = 1  # 1-based row holding column labels
    keep_na_strings: tuple[str, ...] = DEFAULT_KEEP_NA_STRINGS  # kept as text, not NaN
    target_table: str = "tracker_raw"
    batch_size: int = 500
    google_sheets: GoogleSheetsConfig = field(default_factory=GoogleSheetsConfig)
    assets: AssetConfig = field(default_factory=AssetConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
