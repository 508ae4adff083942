"""
ExcelWriter: builds styled export workbooks.
"""
from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Callable, Optional

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from data_alchemist.excel.formatters import auto_column_width, format_data_cell, format_header_row
from data_alchemist.excel.styles import NOTE_FONT


ColSpec = tuple[str, str, str]  # (key, col_type, label)


def cell_value(value):
    """Lists join with ", "; mappings become JSON text; other non-scalars become str."""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class ExcelWriter:
    """Fluent builder for styled Excel workbooks."""

    def __init__(self) -> None:
        self.wb = Workbook()
        self._first_sheet = True

    # ------------------------------------------------------------------
    # Sheet management
    # ------------------------------------------------------------------

    def add_sheet(self, title: str) -> Worksheet:
        """Create a new worksheet (re-uses the default sheet for the first call)."""
        if self._first_sheet:
            ws = self.wb.active
            ws.title = title
            self._first_sheet = False
        else:
            ws = self.wb.create_sheet(title=title)
        return ws

    # ------------------------------------------------------------------
    # Data tables
    # ------------------------------------------------------------------

    def write_table(
        self,
        ws: Worksheet,
        start_row: int,
        columns: list[ColSpec],
        rows: list[dict],
        highlight_fn: Optional[Callable[[dict, str], Optional[str]]] = None,
        freeze: bool = True,
    ) -> int:
        """Write a header row plus one row per dict.

        highlight_fn(row_data, key) -> "error" | "warning" | None

        Returns the row number after the last data row.
        """
        for col_num, (_, _, label) in enumerate(columns, 1):
            ws.cell(row=start_row, column=col_num).value = label
        format_header_row(ws, start_row, len(columns))

        row = start_row + 1
        for row_data in rows:
            for col_num, (key, col_type, _) in enumerate(columns, 1):
                value = cell_value(row_data.get(key))
                hl = highlight_fn(row_data, key) if highlight_fn else None
                format_data_cell(ws, row, col_num, value, col_type, highlight=hl)
            row += 1

        if freeze:
            ws.freeze_panes = ws.cell(row=start_row + 1, column=1)
        auto_column_width(ws)
        return row

    def write_note(self, ws: Worksheet, row: int, text: str) -> int:
        ws.cell(row=row, column=1).value = text
        ws.cell(row=row, column=1).font = NOTE_FONT
        return row + 1

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, path: str | Path) -> Path:
        """Save the workbook to disk."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.wb.save(path)
        return path

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.wb.save(buffer)
        return buffer.getvalue()
