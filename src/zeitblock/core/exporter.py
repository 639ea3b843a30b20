"""CSV and Excel exports of a day's segments and consolidated blocks."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .models import ConsolidatedBlock, Segment
from .time_segments import format_date, format_time

LOGGER = logging.getLogger("zeitblock.exporter")

SEGMENT_COLUMNS = ["Datum", "Startzeit", "Endzeit", "Dauer", "Beschreibung", "Pause"]
BLOCK_COLUMNS = ["Datum", "Startzeit", "Endzeit", "Dauer", "Beschreibung"]


@dataclass
class ExportTable:
    columns: list[str]
    rows: list[dict[str, object]]


def segments_table(segments: Sequence[Segment]) -> ExportTable:
    rows: list[dict[str, object]] = []
    for segment in segments:
        rows.append(
            {
                "Datum": format_date(segment.day),
                "Startzeit": format_time(segment.start),
                "Endzeit": format_time(segment.end),
                "Dauer": segment.formatted_duration if not segment.is_open else "",
                "Beschreibung": segment.label,
                "Pause": "Ja" if segment.is_break else "Nein",
            }
        )
    return ExportTable(columns=list(SEGMENT_COLUMNS), rows=rows)


def blocks_table(blocks: Sequence[ConsolidatedBlock]) -> ExportTable:
    rows: list[dict[str, object]] = [
        {
            "Datum": format_date(block.day),
            "Startzeit": format_time(block.start),
            "Endzeit": format_time(block.end),
            "Dauer": block.formatted_duration,
            "Beschreibung": block.label,
        }
        for block in blocks
    ]
    return ExportTable(columns=list(BLOCK_COLUMNS), rows=rows)


def export_segments_csv(segments: Sequence[Segment], path: Path) -> Path:
    path = Path(path)
    _write_csv(segments_table(segments), path)
    LOGGER.info("Segments exported", extra={"event": "export_segments_csv", "path": str(path), "rows": len(segments)})
    return path


def export_blocks_csv(blocks: Sequence[ConsolidatedBlock], path: Path) -> Path:
    path = Path(path)
    _write_csv(blocks_table(blocks), path)
    LOGGER.info("Blocks exported", extra={"event": "export_blocks_csv", "path": str(path), "rows": len(blocks)})
    return path


def export_excel(segments: Sequence[Segment], blocks: Sequence[ConsolidatedBlock], path: Path) -> Path:
    """Write one workbook with a sheet for the segments and one for the blocks."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    _write_excel({"Zeiterfassung": segments_table(segments), "Abschluss": blocks_table(blocks)}, path)
    LOGGER.info(
        "Workbook exported",
        extra={"event": "export_excel", "path": str(path), "segments": len(segments), "blocks": len(blocks)},
    )
    return path


# ---------------------------------------------------------------------------
# Writers

def _write_csv(table: ExportTable, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=table.columns)
        writer.writeheader()
        for row in table.rows:
            writer.writerow({column: row.get(column, "") for column in table.columns})


def _write_excel(sheets: dict[str, ExportTable], path: Path) -> None:
    from openpyxl import Workbook  # type: ignore[import]
    from openpyxl.styles import Font  # type: ignore[import]
    from openpyxl.utils import get_column_letter  # type: ignore[import]

    workbook = Workbook()
    workbook.remove(workbook.active)

    for title, table in sheets.items():
        sheet = workbook.create_sheet(title)
        sheet.append(table.columns)
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for row in table.rows:
            sheet.append([row.get(column, "") for column in table.columns])

        for index, column_name in enumerate(table.columns, start=1):
            max_length = len(str(column_name))
            for row in table.rows:
                max_length = max(max_length, len(str(row.get(column_name, ""))))
            sheet.column_dimensions[get_column_letter(index)].width = max(10, min(max_length + 2, 60))
        sheet.freeze_panes = "A2"

    workbook.save(path)
