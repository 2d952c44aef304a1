from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import psycopg2

"""Post-import summary statistics of the tracker table."""

__all__ = [
    "StatisticsError",
    "TableStatistics",
    "fetch_table_statistics",
]

_STATS_SQL = """
SELECT
    COUNT(*),
    COUNT(DISTINCT project_canon),
    COUNT(DISTINCT sub_project_canon),
    COUNT(DISTINCT year_start),
    COUNT(date_iso),
    SUM(no_of_beneficiaries_num),
    SUM(amount_num)
FROM {table}
"""


class StatisticsError(Exception):
    pass


@dataclass(frozen=True)
class TableStatistics:
    total_rows: int
    unique_projects: int
    unique_sub_projects: int
    unique_years: int
    rows_with_valid_date: int
    total_beneficiaries: float | None  # SUM over no rows is NULL
    total_amount: float | None

    def as_log_fields(self) -> str:
        return " ".join(f"{name}={value}" for name, value in vars(self).items())


def fetch_table_statistics(cursor: Any, table: str) -> TableStatistics:
    try:
        cursor.execute(_STATS_SQL.format(table=table))
        row = cursor.fetchone()
    except psycopg2.Error as e:
        raise StatisticsError(f"failed to read statistics of {table}: {e}") from e

    def number(value: Any) -> float | None:
        return None if value is None else float(value)

    return TableStatistics(
        total_rows=row[0],
        unique_projects=row[1],
        unique_sub_projects=row[2],
        unique_years=row[3],
        rows_with_valid_date=row[4],
        total_beneficiaries=number(row[5]),
        total_amount=number(row[6]),
    )
