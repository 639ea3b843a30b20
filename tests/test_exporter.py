from __future__ import annotations

import csv

import pytest

from conftest import DAY, seg, t
from zeitblock.core.exporter import export_blocks_csv, export_excel, export_segments_csv
from zeitblock.core.models import ConsolidatedBlock


def _rows(path):
    with path.open(newline="", encoding="utf-8") as handle:
        return list(csv.reader(handle))


def test_segments_csv_uses_german_columns(tmp_path):
    path = export_segments_csv(
        [seg("09:00", "10:30", "Dev"), seg("10:30", "11:00", "Pause"), seg("11:00", None, "Mail")],
        tmp_path / "out" / "segments.csv",
    )

    rows = _rows(path)

    assert rows[0] == ["Datum", "Startzeit", "Endzeit", "Dauer", "Beschreibung", "Pause"]
    assert rows[1] == ["04.03.2024", "09:00", "10:30", "01:30", "Dev", "Nein"]
    assert rows[2][-1] == "Ja"
    assert rows[3][2:4] == ["", ""]


def test_blocks_csv(tmp_path):
    blocks = [ConsolidatedBlock(DAY, t("09:00"), t("11:00"), "Dev (Teil 1)", 120)]

    rows = _rows(export_blocks_csv(blocks, tmp_path / "blocks.csv"))

    assert rows == [
        ["Datum", "Startzeit", "Endzeit", "Dauer", "Beschreibung"],
        ["04.03.2024", "09:00", "11:00", "02:00", "Dev (Teil 1)"],
    ]


def test_excel_workbook_has_both_sheets(tmp_path):
    openpyxl = pytest.importorskip("openpyxl")
    blocks = [ConsolidatedBlock(DAY, t("09:00"), t("10:00"), "Dev", 60)]

    path = export_excel([seg("09:00", "10:00", "Dev")], blocks, tmp_path / "day.xlsx")

    workbook = openpyxl.load_workbook(path)
    assert workbook.sheetnames == ["Zeiterfassung", "Abschluss"]
    assert workbook["Zeiterfassung"]["E2"].value == "Dev"
    assert workbook["Abschluss"]["D2"].value == "01:00"
