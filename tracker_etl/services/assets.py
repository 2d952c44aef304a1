from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import psycopg2

from ..models.config_models import AssetConfig

"""dim_assets seeding.

Creates one asset row per distinct ``sub_project_canon`` found in the tracker
table. Existing rows are never touched (``ON CONFLICT DO NOTHING``), so image
URLs and descriptions edited by hand survive re-seeding.
"""

__all__ = [
    "SeedError",
    "SeedResult",
    "seed_assets",
]

logger = logging.getLogger(__name__)


class SeedError(Exception):
    pass


@dataclass(frozen=True)
class SeedResult:
    total: int
    inserted: int
    skipped: int  # already present


def fetch_sub_projects(cursor: Any, source_table: str) -> list[str]:
    cursor.execute(
        f"SELECT DISTINCT sub_project_canon FROM {source_table} "
        "WHERE sub_project_canon IS NOT NULL ORDER BY sub_project_canon"
    )
    return [row[0] for row in cursor.fetchall()]


def seed_assets(cursor: Any, asset_config: AssetConfig, source_table: str = "tracker_raw") -> SeedResult:
    """Insert missing dim_assets rows inside one transaction.

    Raises:
        SeedError: On any database error (the transaction is rolled back)
    """
    insert_sql = (
        f"INSERT INTO {asset_config.table} (sub_project_canon, image_url, description) "
        "VALUES (%s, %s, %s) ON CONFLICT (sub_project_canon) DO NOTHING "
        "RETURNING sub_project_canon"
    )
    inserted = 0
    skipped = 0
    try:
        cursor.execute("BEGIN")
        sub_projects = fetch_sub_projects(cursor, source_table)
        if not sub_projects:
            logger.warning("no sub-projects found in %s", source_table)

        for sub_project in sub_projects:
            cursor.execute(insert_sql, (sub_project, None, asset_config.description_for(sub_project)))
            if cursor.rowcount > 0:
                logger.info("created asset: %s", sub_project)
                inserted += 1
            else:
                logger.debug("asset exists: %s", sub_project)
                skipped += 1
        cursor.execute("COMMIT")
    except psycopg2.Error as e:
        try:
            cursor.execute("ROLLBACK")
        except psycopg2.Error:
            logger.exception("rollback failed")
        raise SeedError(f"asset seeding failed: {e}") from e

    return SeedResult(total=len(sub_projects), inserted=inserted, skipped=skipped)
