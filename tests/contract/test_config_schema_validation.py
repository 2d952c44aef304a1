from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest
import yaml

from tracker_etl.config.loader import SCHEMA_PATH, ConfigError, load_config

REPO_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_shipped_config_validates(schema):
    data = yaml.safe_load((REPO_ROOT / "config" / "import.yml").read_text(encoding="utf-8"))
    jsonschema.validate(data, schema)


def test_shipped_config_loads():
    cfg = load_config(REPO_ROOT / "config" / "import.yml")
    assert cfg.sheet_name == "Tracker"
    assert cfg.target_table == "tracker_raw"
    assert cfg.assets.table == "dim_assets"
    assert cfg.assets.description_for("Health Kit").startswith("Comprehensive health")
    assert cfg.assets.description_for("Unknown Programme") == cfg.assets.default_description


@pytest.mark.parametrize(
    "doc",
    [
        {},
        {"source_directory": ""},
        {"source_directory": "./data", "batch_size": 0},
        {"source_directory": "./data", "target_table": "tracker raw; drop"},
        {"source_directory": "./data", "google_sheets": {"sheet": "x"}},
        {"source_directory": "./data", "assets": {"descriptions": {"Snacks": 1}}},
    ],
)
def test_invalid_documents_rejected(schema, doc, tmp_path):
    with pytest.raises(jsonschema.ValidationError):
        jsonschema.validate(doc, schema)

    cfg = tmp_path / "import.yml"
    cfg.write_text(yaml.safe_dump(doc), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(cfg)
