from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from ..cleaning.row_cleaner import CLEANED_COLUMNS

"""Idempotent batch upsert into the tracker table.

Cleaned records are written with ``INSERT ... ON CONFLICT (row_hash) DO
UPDATE`` through psycopg2.extras.execute_values, so re-importing a sheet
overwrites rows in place instead of duplicating them.

PostgreSQL rejects a statement that touches the same conflict key twice, so
records sharing a key within one call are collapsed first (last one wins,
the same outcome as upserting them one by one).
"""

__all__ = [
    "BatchMetrics",
    "BatchUpsertError",
    "UPSERT_COLUMNS",
    "UpsertResult",
    "batch_upsert",
    "build_upsert_sql",
]

UPSERT_COLUMNS: tuple[str, ...] = CLEANED_COLUMNS


class BatchUpsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Timing of one execute_values call."""
    batch_size: int
    elapsed_seconds: float
    start_time: float  # time.time()
    end_time: float


@dataclass(frozen=True)
class UpsertResult:
    upserted_rows: int  # distinct conflict keys written
    collapsed_rows: int = 0  # duplicates dropped before writing


def build_upsert_sql(
    table: str,
    columns: Sequence[str],
    conflict_key: str = "row_hash",
    touch_column: str | None = "updated_at",
) -> str:
    """Build the ``INSERT ... VALUES %s ON CONFLICT ... DO UPDATE`` statement."""
    if conflict_key not in columns:
        raise BatchUpsertError(f"conflict key {conflict_key!r} not among upsert columns")
    cols_sql = ",".join(f'"{c}"' for c in columns)
    assignments = [f'"{c}" = EXCLUDED."{c}"' for c in columns if c != conflict_key]
    if touch_column:
        assignments.append(f'"{touch_column}" = NOW()')
    return (
        f'INSERT INTO {table} ({cols_sql}) VALUES %s '
        f'ON CONFLICT ("{conflict_key}") DO UPDATE SET {", ".join(assignments)}'
    )


def batch_upsert(
    cursor: Any,
    table: str,
    records: Iterable[Mapping[str, Any]],
    columns: Sequence[str] = UPSERT_COLUMNS,
    conflict_key: str = "row_hash",
    page_size: int = 500,
    touch_column: str | None = "updated_at",
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> UpsertResult:
    """Upsert cleaned records keyed on ``conflict_key``.

    Parameters
    ----------
    cursor: psycopg2 cursor (transaction handled by the caller)
    table: target table (validated identifier from config)
    records: cleaned records; missing columns are written as NULL
    columns: columns to write, conflict key included
    page_size: execute_values page size
    touch_column: column set to NOW() on update (None to skip)
    metrics_callback: receives BatchMetrics; not called for empty input
    """
    deduped: dict[Any, Mapping[str, Any]] = {}
    total = 0
    for record in records:
        total += 1
        deduped[record.get(conflict_key)] = record
    if not deduped:
        return UpsertResult(upserted_rows=0)

    sql = build_upsert_sql(table, columns, conflict_key, touch_column)
    rows = [tuple(record.get(c) for c in columns) for record in deduped.values()]

    start_time = time.time()
    try:
        execute_values(cursor, sql, rows, page_size=page_size)
    except psycopg2.Error as e:
        raise BatchUpsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return UpsertResult(upserted_rows=len(rows), collapsed_rows=total - len(rows))
