from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_KEEP_NA_STRINGS,
    AssetConfig,
    DatabaseConfig,
    GoogleSheetsConfig,
    ImportConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (default ``config/import.yml``)
- Validate against ``config_schema.json`` (unknown keys rejected)
- Apply defaults and build the frozen ImportConfig
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or unreadable, or the
            config data fails validation.
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    sheets_raw = data.get("google_sheets") or {}
    assets_raw = data.get("assets") or {}

    google_sheets = GoogleSheetsConfig(
        spreadsheet_id=sheets_raw.get("spreadsheet_id"),
        range=sheets_raw.get("range", GoogleSheetsConfig.range),
        sync_source=sheets_raw.get("sync_source", GoogleSheetsConfig.sync_source),
    )
    assets = AssetConfig(
        table=assets_raw.get("table", AssetConfig.table),
        descriptions=dict(assets_raw.get("descriptions") or {}),
        default_description=assets_raw.get("default_description"),
    )
    database = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
        sslmode=db_raw.get("sslmode"),
    )
    return ImportConfig(
        source_directory=data["source_directory"],
        sheet_name=data.get("sheet_name", "Tracker"),
        header_row=data.get("header_row", 1),
        keep_na_strings=tuple(data.get("keep_na_strings", DEFAULT_KEEP_NA_STRINGS)),
        target_table=data.get("target_table", "tracker_raw"),
        batch_size=data.get("batch_size", 500),
        google_sheets=google_sheets,
        assets=assets,
        database=database,
    )
