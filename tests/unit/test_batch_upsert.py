from __future__ import annotations

import psycopg2
import pytest

from tracker_etl.cleaning.row_cleaner import clean_row
from tracker_etl.db.batch_upsert import (
    UPSERT_COLUMNS,
    BatchUpsertError,
    UpsertResult,
    batch_upsert,
    build_upsert_sql,
)


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.rows: list[tuple] = []
        self.page_size: int | None = None


# execute_values is swapped inside the module so no database is needed
@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    import tracker_etl.db.batch_upsert as bu

    def fake_execute_values(cursor, sql, rows, page_size=100):
        cursor.queries.append(sql)
        cursor.rows.extend(rows)
        cursor.page_size = page_size

    monkeypatch.setattr(bu, "execute_values", fake_execute_values)
    return fake_execute_values


def _record(sr_no, amount="100"):
    return clean_row({"Sr.No": sr_no, "Date": "2024-01-15", "Project": "Health", "Amount": amount})


def test_build_upsert_sql():
    sql = build_upsert_sql("tracker_raw", ["a", "row_hash", "b"])
    assert sql == (
        'INSERT INTO tracker_raw ("a","row_hash","b") VALUES %s '
        'ON CONFLICT ("row_hash") DO UPDATE SET "a" = EXCLUDED."a", "b" = EXCLUDED."b", "updated_at" = NOW()'
    )


def test_build_upsert_sql_without_touch_column():
    sql = build_upsert_sql("t", ["row_hash", "x"], touch_column=None)
    assert sql.endswith('DO UPDATE SET "x" = EXCLUDED."x"')


def test_build_upsert_sql_requires_conflict_key():
    with pytest.raises(BatchUpsertError):
        build_upsert_sql("t", ["a", "b"])


def test_batch_upsert_basic():
    cur = DummyCursor()
    res = batch_upsert(cur, "tracker_raw", [_record(1), _record(2)], page_size=250)

    assert res == UpsertResult(upserted_rows=2, collapsed_rows=0)
    assert len(cur.queries) == 1
    assert cur.page_size == 250
    assert len(cur.rows) == 2
    # values follow the column order
    assert len(cur.rows[0]) == len(UPSERT_COLUMNS)
    assert cur.rows[0][UPSERT_COLUMNS.index("sr_no")] == "1"


def test_batch_upsert_collapses_duplicate_keys_last_wins():
    cur = DummyCursor()
    res = batch_upsert(cur, "tracker_raw", [_record(1, "100"), _record(1, "999"), _record(2)])

    assert res.upserted_rows == 2
    assert res.collapsed_rows == 1
    amounts = [row[UPSERT_COLUMNS.index("amount_num")] for row in cur.rows]
    assert amounts == [999.0, 100.0]


def test_batch_upsert_empty_records():
    cur = DummyCursor()
    calls = []
    res = batch_upsert(cur, "tracker_raw", [], metrics_callback=calls.append)
    assert res.upserted_rows == 0
    assert cur.queries == []
    assert calls == []


def test_batch_upsert_with_metrics_callback():
    cur = DummyCursor()
    captured_metrics = []

    batch_upsert(cur, "tracker_raw", [_record(1), _record(2)], metrics_callback=captured_metrics.append)

    assert len(captured_metrics) == 1
    metrics = captured_metrics[0]
    assert metrics.batch_size == 2
    assert metrics.elapsed_seconds >= 0
    assert metrics.end_time >= metrics.start_time


def test_batch_upsert_database_error(monkeypatch):
    import tracker_etl.db.batch_upsert as bu

    def failing_execute_values(cursor, sql, rows, page_size=100):
        raise psycopg2.DatabaseError("duplicate key value violates unique constraint")

    monkeypatch.setattr(bu, "execute_values", failing_execute_values)
    captured_metrics = []

    with pytest.raises(BatchUpsertError, match="duplicate key"):
        batch_upsert(DummyCursor(), "tracker_raw", [_record(1)], metrics_callback=captured_metrics.append)
    # timing is still reported for the failed batch
    assert len(captured_metrics) == 1


def test_db_package_keeps_upsert_submodule():
    import inspect

    import tracker_etl.db
    import tracker_etl.db.batch_upsert as bu

    assert inspect.ismodule(tracker_etl.db.batch_upsert)
    assert inspect.ismodule(bu)
    assert bu.execute_values is not None
