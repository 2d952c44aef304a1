from .reader import (
    MissingColumnsError,
    SheetData,
    SheetHeaderError,
    SheetNotFoundError,
    normalize_column_name,
    normalize_sheet,
    read_tracker_sheet,
)

__all__ = [
    "MissingColumnsError",
    "SheetData",
    "SheetHeaderError",
    "SheetNotFoundError",
    "normalize_column_name",
    "normalize_sheet",
    "read_tracker_sheet",
]
