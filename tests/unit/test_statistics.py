from __future__ import annotations

from decimal import Decimal

import psycopg2
import pytest

from tracker_etl.services.statistics import StatisticsError, TableStatistics, fetch_table_statistics


class DummyCursor:
    def __init__(self, row=None, fail: bool = False) -> None:
        self.row = row
        self.fail = fail
        self.sql: str | None = None

    def execute(self, sql, params=None):
        if self.fail:
            raise psycopg2.ProgrammingError('relation "tracker_raw" does not exist')
        self.sql = sql

    def fetchone(self):
        return self.row


def test_fetch_table_statistics():
    cur = DummyCursor(row=(120, 5, 9, 4, 110, Decimal("3400"), 125000.5))
    stats = fetch_table_statistics(cur, "tracker_raw")

    assert stats == TableStatistics(
        total_rows=120,
        unique_projects=5,
        unique_sub_projects=9,
        unique_years=4,
        rows_with_valid_date=110,
        total_beneficiaries=3400.0,
        total_amount=125000.5,
    )
    assert "FROM tracker_raw" in cur.sql
    assert "COUNT(date_iso)" in cur.sql


def test_fetch_table_statistics_empty_table():
    stats = fetch_table_statistics(DummyCursor(row=(0, 0, 0, 0, 0, None, None)), "tracker_raw")
    assert stats.total_rows == 0
    assert stats.total_beneficiaries is None
    assert stats.total_amount is None


def test_as_log_fields():
    stats = fetch_table_statistics(DummyCursor(row=(2, 1, 1, 1, 2, 10, 20)), "tracker_raw")
    assert stats.as_log_fields() == (
        "total_rows=2 unique_projects=1 unique_sub_projects=1 unique_years=1 "
        "rows_with_valid_date=2 total_beneficiaries=10.0 total_amount=20.0"
    )


def test_fetch_table_statistics_error():
    with pytest.raises(StatisticsError, match="tracker_raw"):
        fetch_table_statistics(DummyCursor(fail=True), "tracker_raw")
