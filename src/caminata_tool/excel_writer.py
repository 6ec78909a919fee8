"""Generación de Excel con historial de caminatas y checkpoints del período."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from caminata_tool.model import Checkpoint

_DIA_SEMANA: tuple[str, ...] = ("lun", "mar", "mie", "jue", "vie", "sab", "dom")

_HEADER_MAP: dict[str, str] = {
    "weekday": "Día",
    "date": "Fecha",
    "distance_km": "Distancia (km)",
    "notes": "Notas",
    "day_index": "N°",
    "distance_that_day": "Distancia del día (km)",
    "cumulative_distance": "Acumulado (km)",
    "lat": "Latitud",
    "lng": "Longitud",
}


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the export."""

    history_sheet: str = "Historial"
    checkpoints_sheet: str = "Checkpoints"


def _weekday_label(i: object) -> str:
    """Convierte índice 0-6 (lunes-domingo) a etiqueta de 3 letras."""
    try:
        if i is None or (isinstance(i, float) and pd.isna(i)):
            return ""
        if isinstance(i, int | float):
            idx = int(i)
            return _DIA_SEMANA[idx] if 0 <= idx < 7 else ""
        return ""
    except (ValueError, TypeError):
        return ""


def _add_weekday_column(export_df: pd.DataFrame) -> pd.DataFrame:
    """Añade columna weekday (Día) a partir de date."""
    if "date" not in export_df.columns or export_df.empty:
        return export_df
    weekday_series = pd.to_datetime(export_df["date"], errors="coerce").dt.weekday
    export_df = export_df.copy()
    export_df["weekday"] = weekday_series.map(_weekday_label)
    cols = ["weekday"] + [c for c in export_df.columns if c != "weekday"]
    return export_df[cols]


def checkpoints_to_frame(checkpoints: Sequence[Checkpoint]) -> pd.DataFrame:
    """Checkpoints as rows; unavailable positions become empty cells."""
    rows = [
        {
            "day_index": c.day_index,
            "date": c.date,
            "distance_that_day": c.distance_that_day,
            "cumulative_distance": c.cumulative_distance,
            "lat": c.position.lat if c.position else None,
            "lng": c.position.lng if c.position else None,
        }
        for c in checkpoints
    ]
    return pd.DataFrame(
        rows,
        columns=["day_index", "date", "distance_that_day", "cumulative_distance", "lat", "lng"],
    )


def write_history_xlsx(
    walks: pd.DataFrame,
    out_path: Path,
    layout: ExcelLayout,
    checkpoints: Sequence[Checkpoint] | None = None,
) -> None:
    """Write the walk history (and optional checkpoints) to a formatted XLSX.

    Args:
        walks: Ledger frame (``date, distance_km, notes`` at least).
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
        checkpoints: Period checkpoints for a second sheet.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    history = walks[[c for c in ("date", "distance_km", "notes") if c in walks.columns]]
    history = _add_weekday_column(history).rename(columns=_HEADER_MAP)

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        history.to_excel(writer, index=False, sheet_name=layout.history_sheet)
        _format_sheet(writer.book[layout.history_sheet])
        if checkpoints is not None:
            cp = checkpoints_to_frame(checkpoints).rename(columns=_HEADER_MAP)
            cp.to_excel(writer, index=False, sheet_name=layout.checkpoints_sheet)
            _format_sheet(writer.book[layout.checkpoints_sheet])


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    """Aplica alineación y borde a las filas de datos."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    """Establece anchos de columna para evitar ###."""
    widths = [
        ("Día", 6),
        ("N°", 6),
        ("Fecha", 12),
        ("Distancia (km)", 14),
        ("Notas", 30),
        ("Distancia del día (km)", 14),
        ("Acumulado (km)", 14),
        ("Latitud", 12),
        ("Longitud", 12),
    ]
    for header, width in widths:
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    """Aplica formatos numéricos por cabecera."""
    fmt_map: dict[str, str] = {
        "Fecha": "dd/mm/yyyy",
        "Distancia (km)": "0.00",
        "Distancia del día (km)": "0.00",
        "Acumulado (km)": "#,##0.00",
        "Latitud": "0.00000",
        "Longitud": "0.00000",
    }
    for row in ws.iter_rows(min_row=2):
        for header, fmt in fmt_map.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
