"""Row normalization pipeline for Tracker spreadsheet rows.

Field normalizers (pure, never raising) and the row cleaner that turns a raw
spreadsheet row into the canonical record stored in ``tracker_raw``.
"""

from .normalizers import canonicalize, parse_date, parse_numeric, parse_year
from .row_cleaner import CLEANED_COLUMNS, COLUMN_ALIASES, clean_row, generate_row_hash

__all__ = [
    # Field normalizers
    "canonicalize",
    "parse_date",
    "parse_numeric",
    "parse_year",
    # Row cleaner
    "CLEANED_COLUMNS",
    "COLUMN_ALIASES",
    "clean_row",
    "generate_row_hash",
]
