from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..models.config_models import DatabaseConfig

"""PostgreSQL connection handling.

Connection parameters are resolved in this order:
    1. DATABASE_URL / PGDSN (whole DSN)
    2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE / PGSSLMODE
    3. the ``database`` section of the YAML config
``.env`` is loaded by the CLI before this runs, overriding the process env.
"""

__all__ = [
    "db_cursor",
    "resolve_dsn",
]


def resolve_dsn(db_cfg: DatabaseConfig, environ: Mapping[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ

    dsn = env.get("DATABASE_URL") or env.get("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn

    host = env.get("PGHOST", db_cfg.host or "localhost")
    port = env.get("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = env.get("PGUSER", db_cfg.user or "postgres")
    password = env.get("PGPASSWORD", db_cfg.password or "")
    database = env.get("PGDATABASE", db_cfg.database or "postgres")
    sslmode = env.get("PGSSLMODE", db_cfg.sslmode or "")

    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    if sslmode:
        dsn += f" sslmode={sslmode}"
    return dsn


@contextmanager
def db_cursor(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a cursor on a fresh connection.

    The connection runs in autocommit mode; services issue BEGIN / COMMIT /
    ROLLBACK themselves around each workbook or sync run.
    """
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = True
    cur = conn.cursor()
    try:
        yield cur
    finally:
        try:
            cur.close()
        finally:
            conn.close()
