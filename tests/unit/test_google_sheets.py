from __future__ import annotations

from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

import tracker_etl.sheets.google_sheets as gs
from tracker_etl.sheets.google_sheets import (
    SCOPES,
    GoogleSheetsError,
    GoogleSheetsSource,
    build_sheets_service,
    rows_from_values,
)

VALUES = [
    ["Sr.No", "Date", "No. of\nBeneficiaries", "", "Project"],
    ["1", "15/05/2016", "50", "x", "Health"],
    ["2", "", "20"],
    ["3", "2016-06-01", "5", "", "Snacks"],
]


def _service_returning(response):
    service = MagicMock()
    service.spreadsheets.return_value.values.return_value.get.return_value.execute.return_value = response
    return service


def test_rows_from_values_header_and_padding():
    rows = rows_from_values(VALUES)
    assert len(rows) == 3
    assert rows[0] == {"Sr.No": "1", "Date": "15/05/2016", "No. of Beneficiaries": "50", "Project": "Health"}
    # short row: missing trailing cells and "" become None
    assert rows[1] == {"Sr.No": "2", "Date": None, "No. of Beneficiaries": "20", "Project": None}


def test_rows_from_values_offset():
    rows = rows_from_values(VALUES, offset=2)
    assert [r["Sr.No"] for r in rows] == ["3"]


def test_rows_from_values_empty():
    assert rows_from_values([]) == []
    assert rows_from_values([["Sr.No"]]) == []


def test_fetch_values_calls_api():
    service = _service_returning({"values": VALUES})
    source = GoogleSheetsSource(service, "sheet-123", "Tracker!A:Z")

    assert source.fetch_values() == VALUES
    service.spreadsheets.return_value.values.return_value.get.assert_called_once_with(
        spreadsheetId="sheet-123", range="Tracker!A:Z"
    )


def test_fetch_values_empty_range():
    source = GoogleSheetsSource(_service_returning({}), "sheet-123")
    assert source.fetch_values() == []
    assert source.row_count() == 0


def test_row_count_excludes_header():
    source = GoogleSheetsSource(_service_returning({"values": VALUES}), "sheet-123")
    assert source.row_count() == 3


def test_fetch_new_rows():
    source = GoogleSheetsSource(_service_returning({"values": VALUES}), "sheet-123")
    assert [r["Sr.No"] for r in source.fetch_new_rows(1)] == ["2", "3"]
    assert source.fetch_new_rows(3) == []
    assert len(source.fetch_rows()) == 3


def test_http_error_wrapped():
    service = MagicMock()
    resp = httplib2.Response({"status": "403", "reason": "Forbidden"})
    service.spreadsheets.return_value.values.return_value.get.return_value.execute.side_effect = HttpError(
        resp, b"permission denied"
    )
    source = GoogleSheetsSource(service, "sheet-123")
    with pytest.raises(GoogleSheetsError, match="failed to fetch Tracker!A:Z"):
        source.fetch_values()


def test_source_requires_spreadsheet_id():
    with pytest.raises(GoogleSheetsError):
        GoogleSheetsSource(MagicMock(), None)


def test_build_sheets_service_unescapes_key(monkeypatch):
    captured = {}

    def fake_from_info(info, scopes=None):
        captured["info"] = info
        captured["scopes"] = scopes
        return "credentials"

    def fake_build(api, version, credentials=None, cache_discovery=True):
        captured["build"] = (api, version, credentials, cache_discovery)
        return "service"

    monkeypatch.setattr(gs.service_account.Credentials, "from_service_account_info", fake_from_info)
    monkeypatch.setattr(gs, "build", fake_build)

    service = build_sheets_service("etl@project.iam.gserviceaccount.com", "-----BEGIN-----\\nabc\\n-----END-----")

    assert service == "service"
    assert captured["info"]["private_key"] == "-----BEGIN-----\nabc\n-----END-----"
    assert captured["info"]["client_email"] == "etl@project.iam.gserviceaccount.com"
    assert captured["scopes"] == SCOPES
    assert captured["build"] == ("sheets", "v4", "credentials", False)


@pytest.mark.parametrize("email,key", [("", "key"), ("etl@x", ""), (None, None)])
def test_build_sheets_service_requires_credentials(email, key):
    with pytest.raises(GoogleSheetsError):
        build_sheets_service(email, key)
