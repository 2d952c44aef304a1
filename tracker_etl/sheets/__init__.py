from .google_sheets import GoogleSheetsError, GoogleSheetsSource, build_sheets_service, rows_from_values

__all__ = [
    "GoogleSheetsError",
    "GoogleSheetsSource",
    "build_sheets_service",
    "rows_from_values",
]
