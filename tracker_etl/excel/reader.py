from __future__ import annotations

import re
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Excel reader for Tracker workbooks.

The workbook holds one "Tracker" sheet (name matched case-insensitively) with
the column labels on the header row and data below it. Labels are normalized
(embedded newlines and repeated spaces collapsed) so "No. of\\nBeneficiaries"
matches "No. of Beneficiaries".

Cells are returned untouched apart from NaN/NaT -> None; the row cleaner
needs the native types (datetimes, serial numbers) for date parsing.
"""

__all__ = [
    "MissingColumnsError",
    "SheetData",
    "SheetHeaderError",
    "SheetNotFoundError",
    "find_sheet_name",
    "normalize_column_name",
    "normalize_sheet",
    "read_tracker_sheet",
]

_LINE_BREAKS = re.compile(r"\r?\n")
_WHITESPACE_RUN = re.compile(r"\s+")


class SheetNotFoundError(Exception):
    """Raised when the workbook has no sheet with the configured name."""


class SheetHeaderError(Exception):
    """Raised when the header row is missing."""


class MissingColumnsError(Exception):
    """Raised when none of the known Tracker columns appear in the header."""


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[dict[str, Any]]  # normalized label -> raw cell value


def normalize_column_name(label: Any) -> str:
    """Collapse newlines and whitespace runs in a header label and trim it."""
    if label is None or (not isinstance(label, str) and pd.isna(label)):
        return ""
    text = _LINE_BREAKS.sub(" ", str(label))
    return _WHITESPACE_RUN.sub(" ", text).strip()


def find_sheet_name(sheet_names: Iterable[Any], wanted: str) -> str:
    """Return the actual sheet name matching ``wanted`` (case/space-insensitive)."""
    names = [str(n) for n in sheet_names]
    key = wanted.strip().lower()
    for name in names:
        if name.strip().lower() == key:
            return name
    raise SheetNotFoundError(f'sheet "{wanted}" not found. Available sheets: {", ".join(names)}')


def read_tracker_sheet(
    path: Path, sheet_name: str = "Tracker", keep_na_strings: Collection[str] | None = None
) -> tuple[str, pd.DataFrame]:
    """Read the Tracker sheet of a workbook without header interpretation.

    Parameters
    ----------
    path: workbook path
    sheet_name: configured sheet name (matched case-insensitively)
    keep_na_strings: strings pandas would turn into NaN that must stay text
        (e.g. "NA" in the Quantity column is a value, not an empty cell)

    Returns
    -------
    (actual sheet name, raw DataFrame)
    """
    import pandas._libs.parsers as parsers

    if keep_na_strings:
        na_values = list(parsers.STR_NA_VALUES - set(keep_na_strings))
        keep_default_na = False
    else:
        na_values = None
        keep_default_na = True

    with pd.ExcelFile(path) as xls:
        actual = find_sheet_name(xls.sheet_names, sheet_name)
        df = xls.parse(actual, header=None, keep_default_na=keep_default_na, na_values=na_values)
    return actual, df


def normalize_sheet(
    df: pd.DataFrame,
    sheet_name: str,
    header_row: int = 1,
    known_columns: Collection[str] | None = None,
) -> SheetData:
    """Apply the header row and turn the remaining rows into dicts.

    Steps:
    1. Validate the header row exists
    2. Normalize header labels; unlabeled columns are dropped
    3. Skip fully empty rows, NaN/NaT -> None
    4. If ``known_columns`` is given, require at least one of them
    """
    if header_row < 1 or df.shape[0] < header_row:
        raise SheetHeaderError(f"sheet '{sheet_name}' lacks header row {header_row}")
    header_series = df.iloc[header_row - 1]
    columns = [normalize_column_name(c) for c in header_series.tolist()]

    if known_columns is not None and not set(columns) & set(known_columns):
        raise MissingColumnsError(
            f"sheet '{sheet_name}' has none of the expected columns; header={[c for c in columns if c]}"
        )

    rows: list[dict[str, Any]] = []
    for _, raw in df.iloc[header_row:].iterrows():
        if raw.isna().all():
            continue
        row_dict: dict[str, Any] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            if not col:
                continue
            row_dict[col] = None if pd.isna(val) else val
        rows.append(row_dict)

    return SheetData(sheet_name=sheet_name, columns=[c for c in columns if c], rows=rows)
