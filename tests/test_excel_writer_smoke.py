from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import cast

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from caminata_tool.excel_writer import ExcelLayout, _format_sheet, checkpoints_to_frame, write_history_xlsx
from caminata_tool.ledger import WalkLedger
from caminata_tool.model import Checkpoint, GeoPoint, WalkEntry


def _ledger_frame() -> pd.DataFrame:
    ledger = WalkLedger(
        [
            WalkEntry(id="b", date=date(2024, 1, 2), distance_km=3.25, notes="Parque"),
            WalkEntry(id="a", date=date(2024, 1, 1), distance_km=5.5),
        ]
    )
    return ledger.to_frame()


def test_write_history_xlsx_happy_path_and_formatting(tmp_path: Path) -> None:
    """Una fila por caminata: Día, Fecha, Distancia (km), Notas."""
    out = tmp_path / "nested" / "out.xlsx"
    write_history_xlsx(_ledger_frame(), out, ExcelLayout())

    wb = load_workbook(out)
    assert wb.sheetnames == [ExcelLayout().history_sheet]
    ws = cast(Worksheet, wb[ExcelLayout().history_sheet])

    headers = [cell.value for cell in ws[1]]
    assert headers == ["Día", "Fecha", "Distancia (km)", "Notas"]
    assert "id" not in headers

    # 2024-01-01 es lunes
    assert ws.cell(row=2, column=1).value == "lun"
    assert ws.cell(row=3, column=1).value == "mar"
    dist_col = headers.index("Distancia (km)") + 1
    assert ws.cell(row=2, column=dist_col).value == 5.5
    assert ws.cell(row=2, column=dist_col).number_format == "0.00"

    assert ws.column_dimensions["A"].width == 6
    notas_letter = get_column_letter(headers.index("Notas") + 1)
    assert ws.column_dimensions[notas_letter].width == 30


def test_write_history_xlsx_with_checkpoints_sheet(tmp_path: Path) -> None:
    checkpoints = [
        Checkpoint(1, date(2024, 1, 1), 5.5, 15.5, GeoPoint(0.0, 0.13939)),
        Checkpoint(2, date(2024, 1, 2), 3.25, 18.75, None),
    ]
    out = tmp_path / "out.xlsx"
    write_history_xlsx(_ledger_frame(), out, ExcelLayout(), checkpoints)

    wb = load_workbook(out)
    ws = cast(Worksheet, wb[ExcelLayout().checkpoints_sheet])
    headers = [cell.value for cell in ws[1]]
    assert headers[:4] == ["N°", "Fecha", "Distancia del día (km)", "Acumulado (km)"]

    lat_col = headers.index("Latitud") + 1
    lng_col = headers.index("Longitud") + 1
    assert ws.cell(row=2, column=lng_col).value == 0.13939
    # posición no disponible queda vacía
    assert ws.cell(row=3, column=lat_col).value is None
    assert ws.cell(row=2, column=headers.index("Acumulado (km)") + 1).number_format == "#,##0.00"


def test_write_history_xlsx_empty_ledger(tmp_path: Path) -> None:
    out = tmp_path / "empty.xlsx"
    write_history_xlsx(WalkLedger().to_frame(), out, ExcelLayout(), [])
    wb = load_workbook(out)
    ws = wb[ExcelLayout().history_sheet]
    assert [cell.value for cell in ws[1]] == ["Fecha", "Distancia (km)", "Notas"]
    assert ws.max_row == 1


def test_checkpoints_to_frame_columns() -> None:
    df = checkpoints_to_frame([])
    assert list(df.columns) == ["day_index", "date", "distance_that_day", "cumulative_distance", "lat", "lng"]


def test_format_sheet_ignores_unknown_headers() -> None:
    wb = Workbook()
    ws = cast(Worksheet, wb.active)
    ws.append(["Distancia (km)", "Otra"])
    ws.append([4.5, "x"])

    _format_sheet(ws)

    assert ws.cell(row=1, column=2).font.bold is True
    assert ws.cell(row=2, column=1).number_format == "0.00"
    assert ws.cell(row=2, column=2).number_format == "General"
    assert ws.cell(row=2, column=2).alignment.horizontal == "center"
