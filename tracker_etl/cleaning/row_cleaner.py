from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence
from typing import Any

from .normalizers import canonicalize, is_missing, parse_date, parse_numeric, parse_year, to_text

"""Row cleaner: raw Tracker row -> flat canonical record.

A raw row maps spreadsheet column labels (exact, after header normalization)
to cell values. Each logical field is resolved from an ordered alias list so
legacy sheet layouts ("Name of Institute / Area of Service", "Services /
Remarks", ...) land in the same record shape.

The record keeps every original value as text, adds ``*_canon`` grouping
keys, parsed year/date/numeric fields and ``row_hash``, the upsert key.
"""

__all__ = [
    "CANONICAL_FIELDS",
    "CLEANED_COLUMNS",
    "COLUMN_ALIASES",
    "HASH_FIELDS",
    "NUMERIC_FIELDS",
    "clean_row",
    "generate_row_hash",
    "resolve_column",
]

# Logical field -> accepted column labels, most preferred first
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "sr_no": ("Sr.No",),
    "year": ("Year",),
    "month": ("Month",),
    "date": ("Date",),
    "cause": ("Cause",),
    "project": ("Project",),
    "sub_project": ("Sub Project",),
    "institute": ("Institute", "Name of Institute / Area of Service"),
    "department": ("Department",),
    "type_of_institution": ("Type of Institution", "Type of Institute"),
    "quantity": ("Quantity",),
    "no_of_beneficiaries": ("No. of Beneficiaries",),
    "remarks": ("Remarks", "Services / Remarks"),
    "amount": ("Amount",),
    "comments_by_pankti": ("Comments by Pankti",),
    "on_account_kind": ("On account / Kind",),
}

CANONICAL_FIELDS: tuple[str, ...] = (
    "month",
    "cause",
    "project",
    "sub_project",
    "institute",
    "department",
    "type_of_institution",
    "remarks",
)

NUMERIC_FIELDS: tuple[str, ...] = ("quantity", "no_of_beneficiaries", "amount")

# The row's whole identity: other fields may change and still upsert in place
HASH_FIELDS: tuple[str, ...] = ("sr_no", "date", "project", "sub_project")

# Column order of a cleaned record (also the tracker_raw upsert column list)
CLEANED_COLUMNS: tuple[str, ...] = (
    *COLUMN_ALIASES,
    *(f"{name}_canon" for name in CANONICAL_FIELDS),
    "year_start",
    "year_end",
    "year_label",
    "date_iso",
    *(f"{name}_num" for name in NUMERIC_FIELDS),
    "row_hash",
)


def resolve_column(raw_row: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    """Return the value of the first alias present in ``raw_row``.

    None, NaN and NaT count as absent; an empty string is a present value.
    """
    for label in aliases:
        value = raw_row.get(label)
        if value is None or (is_missing(value) and not isinstance(value, str)):
            continue
        return value
    return None


def generate_row_hash(original: Mapping[str, Any]) -> str:
    """SHA-256 hex digest of ``sr_no|date|project|sub_project`` (originals)."""
    key = "|".join(original.get(name) or "" for name in HASH_FIELDS)
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def clean_row(raw_row: Mapping[str, Any]) -> dict[str, Any]:
    """Clean one raw Tracker row.

    Args:
        raw_row: Column label -> raw cell value

    Returns:
        Flat dict keyed by ``CLEANED_COLUMNS``

    Raises:
        TypeError: If ``raw_row`` is not a mapping
    """
    if not isinstance(raw_row, Mapping):
        raise TypeError(f"raw row must be a mapping, got {type(raw_row).__name__}")

    raw_values = {field: resolve_column(raw_row, aliases) for field, aliases in COLUMN_ALIASES.items()}
    original = {field: to_text(value) for field, value in raw_values.items()}

    record: dict[str, Any] = dict(original)
    for name in CANONICAL_FIELDS:
        record[f"{name}_canon"] = canonicalize(original[name])
    record.update(parse_year(original["year"]))
    # raw cell, not the text: serial numbers and native dates need their type
    record["date_iso"] = parse_date(raw_values["date"])
    for name in NUMERIC_FIELDS:
        record[f"{name}_num"] = parse_numeric(original[name])
    record["row_hash"] = generate_row_hash(original)
    return record
