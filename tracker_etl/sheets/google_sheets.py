from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..excel.reader import normalize_column_name

"""Google Sheets source for the incremental sync.

Reads the Tracker range with a service account (read-only scope). The first
row of the range is the header; every following row is one RawRow. The sheet
is treated as append-only, so "new rows" are the data rows past the number
already synced.
"""

__all__ = [
    "GoogleSheetsError",
    "GoogleSheetsSource",
    "SCOPES",
    "build_sheets_service",
    "rows_from_values",
]

SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleSheetsError(Exception):
    pass


def build_sheets_service(client_email: str, private_key: str) -> Any:
    """Build an authenticated Sheets v4 service from service-account fields.

    ``private_key`` may carry literal ``\\n`` sequences (as stored in .env
    files); they are turned back into newlines.
    """
    if not client_email or not private_key:
        raise GoogleSheetsError("GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY are required")
    info = {
        "type": "service_account",
        "client_email": client_email,
        "private_key": private_key.replace("\\n", "\n"),
        "token_uri": TOKEN_URI,
    }
    try:
        credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    except ValueError as e:
        raise GoogleSheetsError(f"invalid service account credentials: {e}") from e
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


def rows_from_values(values: Sequence[Sequence[Any]], offset: int = 0) -> list[dict[str, Any]]:
    """Convert a values range (header + data rows) into RawRow dicts.

    Args:
        values: Rows as returned by ``spreadsheets.values.get``
        offset: Number of leading data rows to skip (already synced)

    Returns:
        One dict per data row; empty or missing trailing cells become None
    """
    if not values:
        return []
    header, *data_rows = values
    labels = [normalize_column_name(h) for h in header]

    rows: list[dict[str, Any]] = []
    for raw in data_rows[offset:]:
        row: dict[str, Any] = {}
        for index, label in enumerate(labels):
            if not label:
                continue
            cell = raw[index] if index < len(raw) else None
            row[label] = cell if cell not in ("", None) else None
        rows.append(row)
    return rows


class GoogleSheetsSource:
    """Tracker rows from one spreadsheet range."""

    def __init__(self, service: Any, spreadsheet_id: str, range_: str = "Tracker!A:Z") -> None:
        if not spreadsheet_id:
            raise GoogleSheetsError("spreadsheet id is required (GOOGLE_SHEETS_SHEET_ID)")
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.range = range_

    def fetch_values(self) -> list[list[Any]]:
        """Fetch the raw values of the range, header row included."""
        try:
            response = (
                self.service.spreadsheets()
                .values()
                .get(spreadsheetId=self.spreadsheet_id, range=self.range)
                .execute()
            )
        except HttpError as e:
            raise GoogleSheetsError(f"failed to fetch {self.range}: {e}") from e
        return response.get("values", [])

    def fetch_rows(self) -> list[dict[str, Any]]:
        return rows_from_values(self.fetch_values())

    def fetch_new_rows(self, last_synced_row_count: int) -> list[dict[str, Any]]:
        values = self.fetch_values()
        if len(values) - 1 <= last_synced_row_count:
            return []
        return rows_from_values(values, offset=last_synced_row_count)

    def row_count(self) -> int:
        """Number of data rows (header excluded)."""
        return max(0, len(self.fetch_values()) - 1)
