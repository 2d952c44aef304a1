from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import replace
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from tracker_etl.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from tracker_etl.db.connection import db_cursor
from tracker_etl.excel.reader import normalize_sheet, read_tracker_sheet
from tracker_etl.logging.init import log_summary, set_debug, setup_logging
from tracker_etl.models.config_models import ImportConfig
from tracker_etl.services.assets import SeedError, seed_assets
from tracker_etl.services.orchestrator import KNOWN_COLUMNS, ProcessingError, clean_rows, import_files, scan_excel_files
from tracker_etl.services.statistics import StatisticsError, fetch_table_statistics
from tracker_etl.services.summary import render_summary_line, render_sync_summary_line
from tracker_etl.services.sync import SyncError, sync_google_sheets
from tracker_etl.sheets.google_sheets import GoogleSheetsError, GoogleSheetsSource, build_sheets_service

"""Command line entrypoint: ``python -m tracker_etl.cli <command>``.

Commands:
    import       Excel workbooks -> tracker table (default: every .xlsx in
                 ``source_directory``)
    sync         incremental Google Sheets -> tracker table
    seed-assets  one dim_assets row per distinct sub-project
    inspect      print normalized headers and the first cleaned rows

Exit codes: 0 success, 1 fatal (config, connection, sync failure), 2 some
workbooks or rows failed.

``.env`` is loaded first and overrides the process environment.
``DISABLE_DB_CONNECT=1`` runs ``import`` without a database (mock mode).
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

SUMMARY_PREFIX = "SUMMARY "


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; .env values win over the process env."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _apply_env_overrides(cfg: ImportConfig) -> ImportConfig:
    sheets = cfg.google_sheets
    sheet_id = os.getenv("GOOGLE_SHEETS_SHEET_ID")
    sheet_range = os.getenv("GOOGLE_SHEETS_RANGE")
    if sheet_id:
        sheets = replace(sheets, spreadsheet_id=sheet_id)
    if sheet_range:
        sheets = replace(sheets, range=sheet_range)
    return replace(cfg, google_sheets=sheets)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="tracker_etl", description="Tracker spreadsheet -> PostgreSQL ETL")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--env-file", type=Path, default=Path(".env"), help="dotenv file loaded before anything else")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")

    sub = p.add_subparsers(dest="command")

    imp = sub.add_parser("import", help="Import Excel workbooks")
    imp.add_argument("--file", dest="files", type=Path, action="append", help="Workbook to import (repeatable)")

    sub.add_parser("sync", help="Sync new rows from Google Sheets")
    sub.add_parser("seed-assets", help="Create missing dim_assets rows")

    ins = sub.add_parser("inspect", help="Print headers and first cleaned rows")
    ins.add_argument("--file", dest="files", type=Path, action="append", help="Workbook to inspect (repeatable)")
    ins.add_argument("--rows", type=int, default=3, help="Rows to print per workbook")

    args = p.parse_args(argv)
    if args.command is None:
        args.command = "import"
        args.files = None
    return args


def _resolve_files(cfg: ImportConfig, files: list[Path] | None) -> list[Path]:
    if files:
        missing = [f for f in files if not f.is_file()]
        if missing:
            raise ProcessingError(f"file not found: {', '.join(str(f) for f in missing)}")
        return files
    return scan_excel_files(Path(cfg.source_directory))


def _run_import(cfg: ImportConfig, files: list[Path] | None, logger) -> int:
    try:
        targets = _resolve_files(cfg, files)
    except ProcessingError as e:
        logger.error("processing: %s", e)
        return EXIT_FATAL

    logger.info("Processing %d workbook(s) from: %s", len(targets), cfg.source_directory)

    db_mode = "mock"
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        result = import_files(cfg, targets, cursor=None)
    else:
        try:
            with db_cursor(cfg.database) as cur:
                db_mode = "live"
                result = import_files(cfg, targets, cursor=cur)
                try:
                    stats = fetch_table_statistics(cur, cfg.target_table)
                except StatisticsError as e:
                    logger.warning("%s", e)
                else:
                    logger.info("table=%s %s", cfg.target_table, stats.as_log_fields())
        except psycopg2.OperationalError as e:
            logger.warning("DB connection failed -> fallback to mock mode: %s", e)
            db_mode = "mock"
            result = import_files(cfg, targets, cursor=None)

    logger.info("mode=%s total_rows=%d", db_mode, result.total_upserted_rows)
    log_summary(render_summary_line(result.total_files, result)[len(SUMMARY_PREFIX):])

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _run_sync(cfg: ImportConfig, logger) -> int:
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.error("sync needs a database (DISABLE_DB_CONNECT=1)")
        return EXIT_FATAL

    sheets_cfg = cfg.google_sheets
    try:
        service = build_sheets_service(
            os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", ""),
            os.getenv("GOOGLE_PRIVATE_KEY", ""),
        )
        source = GoogleSheetsSource(service, sheets_cfg.spreadsheet_id, sheets_cfg.range)
    except GoogleSheetsError as e:
        logger.error("google sheets: %s", e)
        return EXIT_FATAL

    try:
        with db_cursor(cfg.database) as cur:
            result = sync_google_sheets(
                source,
                cur,
                table=cfg.target_table,
                sync_source=sheets_cfg.sync_source,
                batch_size=cfg.batch_size,
            )
    except psycopg2.OperationalError as e:
        logger.error("DB connection failed: %s", e)
        return EXIT_FATAL
    except SyncError as e:
        logger.error("sync: %s", e)
        return EXIT_FATAL

    logger.info("%s", result.message)
    log_summary(render_sync_summary_line(result)[len(SUMMARY_PREFIX):])
    return EXIT_SUCCESS_ALL if result.success else EXIT_PARTIAL_FAILURE


def _run_seed_assets(cfg: ImportConfig, logger) -> int:
    try:
        with db_cursor(cfg.database) as cur:
            result = seed_assets(cur, cfg.assets, cfg.target_table)
    except psycopg2.OperationalError as e:
        logger.error("DB connection failed: %s", e)
        return EXIT_FATAL
    except SeedError as e:
        logger.error("%s", e)
        return EXIT_FATAL

    log_summary(f"sub_projects={result.total} inserted={result.inserted} skipped={result.skipped}")
    return EXIT_SUCCESS_ALL


def _inspect_data(cfg: ImportConfig, files: list[Path] | None, rows: int) -> int:
    try:
        targets = _resolve_files(cfg, files)
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not targets:
        print("inspect: no .xlsx files")
        return EXIT_SUCCESS_ALL

    for path in targets:
        print(f"FILE: {path.name}")
        try:
            sheet_name, df = read_tracker_sheet(path, cfg.sheet_name, cfg.keep_na_strings)
            sheet = normalize_sheet(df, sheet_name, header_row=cfg.header_row, known_columns=KNOWN_COLUMNS)
        except Exception as e:  # unreadable workbook or sheet, keep inspecting the rest
            print(f"  error={e}")
            continue
        records, null_dates = clean_rows(sheet.rows[:rows])
        print(f"  SHEET: {sheet.sheet_name} rows={len(sheet.rows)} cols={sheet.columns}")
        for record in records:
            print("    " + json.dumps(record, ensure_ascii=False, default=str))
        if null_dates:
            print(f"  unparsed_dates_in_sample={null_dates}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # [] must not fall back to sys.argv (pytest arguments would leak in)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(args.env_file, override=True)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        cfg = _apply_env_overrides(load_config(args.config))
    except ConfigError as e:
        logger.error("config: %s", e)
        return EXIT_FATAL

    if args.command == "inspect":
        return _inspect_data(cfg, args.files, args.rows)
    if args.command == "sync":
        return _run_sync(cfg, logger)
    if args.command == "seed-assets":
        return _run_seed_assets(cfg, logger)
    return _run_import(cfg, args.files, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
