# In-memory stand-in for the tracker table, driven through the real CLI
from __future__ import annotations

from contextlib import contextmanager
from unittest.mock import patch

import psycopg2
import pytest

from tracker_etl.db.batch_upsert import UPSERT_COLUMNS

HASH_INDEX = UPSERT_COLUMNS.index("row_hash")


class TableCursor:
    """Cursor keeping upserted rows keyed on row_hash with BEGIN/COMMIT/ROLLBACK."""

    def __init__(self) -> None:
        self.committed: dict[str, tuple] = {}
        self.pending: dict[str, tuple] | None = None
        self.statements: list[str] = []
        self.fail_when: str | None = None  # upsert fails if any value equals this

    def execute(self, sql, params=None):
        self.statements.append(sql)
        if sql == "BEGIN":
            self.pending = dict(self.committed)
        elif sql == "COMMIT":
            self.committed = self.pending or {}
            self.pending = None
        elif sql == "ROLLBACK":
            self.pending = None

    def fetchone(self):
        return (len(self.committed), 0, 0, 0, 0, None, None)

    def upsert(self, rows) -> None:
        if self.fail_when is not None and any(self.fail_when in row for row in rows):
            raise psycopg2.DataError(f"invalid input syntax: {self.fail_when}")
        target = self.pending if self.pending is not None else self.committed
        for row in rows:
            target[row[HASH_INDEX]] = row

    def table(self) -> list[dict]:
        return [dict(zip(UPSERT_COLUMNS, row)) for row in self.committed.values()]


@pytest.fixture()
def table_cursor(monkeypatch):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    cursor = TableCursor()

    @contextmanager
    def fake_db_cursor(db_cfg):
        yield cursor

    def fake_execute_values(cur, sql, rows, page_size=100):
        cur.upsert(rows)

    with patch("tracker_etl.cli.__main__.db_cursor", fake_db_cursor), \
         patch("tracker_etl.db.batch_upsert.execute_values", fake_execute_values):
        yield cursor
