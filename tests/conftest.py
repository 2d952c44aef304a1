# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from tracker_etl.logging.init import reset_logging

TRACKER_HEADER = [
    "Sr.No",
    "Year",
    "Month",
    "Date",
    "Cause",
    "Project",
    "Sub Project",
    "Institute",
    "Department",
    "Type of Institution",
    "Quantity",
    "No. of Beneficiaries",
    "Remarks",
    "Amount",
]


@pytest.fixture(autouse=True)
def fresh_logging():
    # handlers bind sys.stdout at setup time; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
sheet_name: Tracker
header_row: 1
target_table: tracker_raw
batch_size: 2
google_sheets:
  spreadsheet_id: sheet-from-yaml
  range: Tracker!A:P
assets:
  descriptions:
    Health Kit: Hygiene supplies for families.
  default_description: Community programme.
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def tracker_header() -> list[str]:
    return list(TRACKER_HEADER)


@pytest.fixture()
def make_workbook(temp_workdir: Path) -> Callable[..., Path]:
    """Write rows (header included) to ``data/<name>`` as a real .xlsx."""
    def _make(name: str, rows: list[list[object]], sheet_name: str = "Tracker") -> Path:
        path = temp_workdir / "data" / name
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        return path
    return _make


@pytest.fixture()
def tracker_rows(tracker_header: list[str]) -> list[list[object]]:
    """Header plus three data rows; the third has an unparseable date."""
    return [
        tracker_header,
        [1, "2016-17", "May", "15/05/2016", "Health", "  HEALTH  ", "infant goodie bag", "Civil Hospital",
         "Paediatrics", "Hospital", "100", 50, None, "10,000"],
        [2, "2016-17", "june", "2016-06-01", "health", "Health Kit", "health kit", "City School",
         None, "school", "Multiple", 20, "on site", "₹1,200"],
        [3, "2019", "July", "to be confirmed", "Education", "Snacks", "snacks", "Anganwadi",
         None, "NGO", "NA", 5, None, 300],
    ]
