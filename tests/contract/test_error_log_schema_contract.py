from __future__ import annotations

import json
import re
from pathlib import Path

from tracker_etl.cli.__main__ import main as cli_main

"""Error log contract: one JSON object per line, fixed keys, UTC 'Z' stamps."""

REQUIRED_KEYS = ["timestamp", "source", "sheet", "row", "error_type", "message"]
TS_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$")
FILE_PATTERN = re.compile(r"^errors-\d{8}-\d{6}\.log$")


def _error_logs(workdir: Path) -> list[Path]:
    return sorted((workdir / "logs").glob("errors-*.log"))


def test_error_log_written_for_failed_workbook(write_config, temp_workdir, make_workbook, tracker_rows, monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    make_workbook("good.xlsx", tracker_rows)
    make_workbook("bad.xlsx", tracker_rows, sheet_name="Summary")
    (temp_workdir / "data" / "broken.xlsx").write_bytes(b"not a zip archive")

    assert cli_main(["import"]) == 2

    logs = _error_logs(temp_workdir)
    assert len(logs) == 1
    assert FILE_PATTERN.match(logs[0].name)

    records = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert len(records) == 2
    for rec in records:
        assert list(rec) == REQUIRED_KEYS
        assert TS_PATTERN.match(rec["timestamp"])
        assert isinstance(rec["row"], int)
        assert rec["error_type"].isupper()

    by_source = {rec["source"]: rec for rec in records}
    assert by_source["bad.xlsx"]["error_type"] == "SHEET_VALIDATION_ERROR"
    assert by_source["bad.xlsx"]["row"] == -1
    assert by_source["broken.xlsx"]["error_type"] == "PROCESSING_ERROR"
    assert by_source["broken.xlsx"]["sheet"] == "<FILE_LEVEL>"


def test_no_error_log_on_clean_run(write_config, temp_workdir, make_workbook, tracker_rows, monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    make_workbook("good.xlsx", tracker_rows)

    assert cli_main(["import"]) == 0
    assert _error_logs(temp_workdir) == []
