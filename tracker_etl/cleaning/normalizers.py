from __future__ import annotations

import math
import numbers
import re
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd
from dateutil import parser as date_parser

"""Field normalizers for Tracker spreadsheet cells.

Each function handles one field class and never raises for cell-shaped input:
- canonicalize: trim / collapse whitespace / title case (grouping key)
- parse_year: "2016-17", "2016-2017", "2019" -> start, end, label
- parse_date: native dates, spreadsheet serial numbers, many text formats -> ISO
- parse_numeric: "1,000", "₹1,000", "Multiple", "NA" -> float or None

Unparseable input degrades to None (parse_year keeps the text as its label).
"""

__all__ = [
    "DATE_FORMATS",
    "NUMERIC_SENTINELS",
    "canonicalize",
    "is_missing",
    "parse_date",
    "parse_numeric",
    "parse_year",
    "to_text",
]

_WHITESPACE_RUN = re.compile(r"\s+")
_YEAR_RANGE = re.compile(r"^(\d{4})\s*-\s*(\d{2,4})$")
_SINGLE_YEAR = re.compile(r"^(\d{4})$")
_LEADING_YEAR = re.compile(r"\d{4}\D")
_NUMERIC_NOISE = re.compile(r"[,₹$]")
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

# Values meaning "not a fixed quantity" in the tracker sheet
NUMERIC_SENTINELS = frozenset({"multiple", "na", "n/a"})

# 1900-01-01 minus 2 days reproduces the 1900 leap-year bug of spreadsheet serials
_SERIAL_EPOCH = datetime(1900, 1, 1)

# Fixed default for lenient parsing so partial dates never depend on "today"
_LENIENT_DEFAULT = datetime(1900, 1, 1)

# Ordered (shape, strptime format). First strict match wins, so day-first
# variants take precedence over month-first ones for ambiguous input.
DATE_FORMATS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(shape), fmt)
    for shape, fmt in (
        (r"\d{4}-\d{2}-\d{2}", "%Y-%m-%d"),  # YYYY-MM-DD
        (r"\d{2}/\d{2}/\d{4}", "%d/%m/%Y"),  # DD/MM/YYYY
        (r"\d{2}/\d{2}/\d{4}", "%m/%d/%Y"),  # MM/DD/YYYY
        (r"\d{2}-\d{2}-\d{4}", "%d-%m-%Y"),  # DD-MM-YYYY
        (r"\d{2}-\d{2}-\d{4}", "%m-%d-%Y"),  # MM-DD-YYYY
        (r"\d{1,2}/\d{1,2}/\d{4}", "%d/%m/%Y"),  # D/M/YYYY
        (r"\d{1,2}/\d{1,2}/\d{4}", "%m/%d/%Y"),  # M/D/YYYY
        (r"\d{2}\.\d{2}\.\d{4}", "%d.%m.%Y"),  # DD.MM.YYYY
        (r"\d{4}/\d{2}/\d{2}", "%Y/%m/%d"),  # YYYY/MM/DD
        (r"\d{1,2}-\d{1,2}-\d{4}", "%d-%m-%Y"),  # D-M-YYYY
        (r"\d{4}-\d{1,2}-\d{1,2}", "%Y-%m-%d"),  # YYYY-M-D
        (r"\d{4}/\d{1,2}/\d{1,2}", "%Y/%m/%d"),  # YYYY/M/D
        (r"\d{1,2} [A-Za-z]{3} \d{4}", "%d %b %Y"),  # D MMM YYYY / DD MMM YYYY
        (r"[A-Za-z]{3} \d{1,2}, \d{4}", "%b %d, %Y"),  # MMM D, YYYY
        (r"[A-Za-z]+ \d{1,2}, \d{4}", "%B %d, %Y"),  # MMMM D, YYYY
    )
)


def is_missing(value: Any) -> bool:
    """Return True for None, NaN, NaT and the empty string (an empty cell)."""
    if value is None or value is pd.NaT:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value == ""


def _is_blank(value: Any) -> bool:
    # year/date cells also treat numeric zero (and False) as empty
    if is_missing(value):
        return True
    return isinstance(value, numbers.Real) and value == 0


def to_text(value: Any) -> str | None:
    """Coerce a raw cell to text the way the spreadsheet displays it.

    Integral floats lose their ``.0`` (pandas reads integer columns holding
    blanks as float), dates render as ISO and booleans as lower-case words.
    Missing cells stay None.
    """
    if is_missing(value):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real):
        number = float(value)
        if number.is_integer():
            return str(int(number))
        return repr(number)
    if isinstance(value, datetime):
        if value.time() == datetime.min.time() and value.tzinfo is None:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def canonicalize(text: Any) -> str | None:
    """Trim, collapse whitespace and title-case every space-delimited token.

    Non-text or blank input returns None. Each token is lower-cased and only
    its first character upper-cased, so "McDONALD" becomes "Mcdonald".
    """
    if not isinstance(text, str) or not text:
        return None
    cleaned = _WHITESPACE_RUN.sub(" ", text.strip())
    if not cleaned:
        return None
    return " ".join(word[:1].upper() + word[1:] for word in cleaned.lower().split(" "))


def parse_year(value: Any) -> dict[str, Any]:
    """Parse a financial-year cell into year_start / year_end / year_label.

    Examples:
        >>> parse_year("2016-17")
        {'year_start': 2016, 'year_end': 2017, 'year_label': '2016-2017'}
        >>> parse_year("invalid")
        {'year_start': None, 'year_end': None, 'year_label': 'invalid'}
    """
    if _is_blank(value):
        return {"year_start": None, "year_end": None, "year_label": None}

    text = (to_text(value) or "").strip()

    range_match = _YEAR_RANGE.match(text)
    if range_match:
        start = int(range_match.group(1))
        end = int(range_match.group(2))
        if end < 100:
            end += (start // 100) * 100
            if end < start:
                end += 100
        return {"year_start": start, "year_end": end, "year_label": f"{start}-{end}"}

    if _SINGLE_YEAR.match(text):
        year = int(text)
        return {"year_start": year, "year_end": year, "year_label": str(year)}

    # Keep what the user typed so the label is never silently lost
    return {"year_start": None, "year_end": None, "year_label": text}


def _parse_date_text(text: str) -> date | None:
    for shape, fmt in DATE_FORMATS:
        if not shape.fullmatch(text):
            continue
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    # a leading year is always followed by month, then day
    dayfirst = not _LEADING_YEAR.match(text)
    try:
        return date_parser.parse(text, dayfirst=dayfirst, default=_LENIENT_DEFAULT).date()
    except (ValueError, OverflowError):
        return None


def parse_date(value: Any) -> str | None:
    """Parse a date cell into ``YYYY-MM-DD``.

    Accepts native ``date``/``datetime`` values (pandas ``Timestamp`` included),
    spreadsheet serial numbers and text in any of ``DATE_FORMATS``, falling
    back to lenient parsing. Returns None when nothing matches.
    """
    if _is_blank(value):
        return None

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        try:
            moment = _SERIAL_EPOCH + timedelta(days=float(value) - 2)
        except (OverflowError, ValueError):
            return None
        return moment.date().isoformat()

    text = str(value).strip()
    if not text:
        return None
    parsed = _parse_date_text(text)
    return parsed.isoformat() if parsed is not None else None


def parse_numeric(value: Any) -> float | None:
    """Parse a quantity / beneficiary / amount cell.

    ``multiple``, ``na`` and ``n/a`` (any case) are treated like garbage input
    and return None; commas and currency symbols are stripped and the leading
    number is kept ("100 kits" -> 100).
    """
    if is_missing(value):
        return None

    text = (to_text(value) or "").strip().lower()
    if text in NUMERIC_SENTINELS:
        return None

    # leading number only: "100 kits" -> 100
    match = _LEADING_NUMBER.match(_NUMERIC_NOISE.sub("", text))
    if match is None:
        return None
    number = float(match.group())
    return number if math.isfinite(number) else None
