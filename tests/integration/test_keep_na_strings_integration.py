from __future__ import annotations

from tracker_etl.cli.__main__ import main as cli_main


def test_na_text_survives_read_and_becomes_null_number(
    write_config, make_workbook, tracker_rows, table_cursor
):
    write_config.write_text(
        write_config.read_text(encoding="utf-8") + 'keep_na_strings: ["NA", "N/A"]\n', encoding="utf-8"
    )
    rows = [list(r) for r in tracker_rows]
    rows[2][10] = "N/A"
    make_workbook("a.xlsx", rows)

    assert cli_main(["import"]) == 0

    by_sr = {r["sr_no"]: r for r in table_cursor.table()}
    # raw text kept verbatim, numeric column nulled by the sentinel rule
    assert by_sr["3"]["quantity"] == "NA"
    assert by_sr["3"]["quantity_num"] is None
    assert by_sr["2"]["quantity"] == "N/A"
    assert by_sr["2"]["quantity_num"] is None
    assert by_sr["1"]["quantity_num"] == 100


def test_na_text_without_keep_list_reads_as_blank(write_config, make_workbook, tracker_rows, table_cursor):
    write_config.write_text(
        write_config.read_text(encoding="utf-8") + "keep_na_strings: []\n", encoding="utf-8"
    )
    make_workbook("a.xlsx", tracker_rows)

    assert cli_main(["import"]) == 0

    by_sr = {r["sr_no"]: r for r in table_cursor.table()}
    assert by_sr["3"]["quantity"] is None
