"""
Reusable Excel cell/row formatting helpers.
"""
from __future__ import annotations

from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from data_alchemist.excel.styles import (
    HEADER_FONT, HEADER_FILL, HEADER_BORDER,
    DATA_FONT, THIN_BORDER, ALTERNATE_FILL,
    CENTER, LEFT, RIGHT, WRAP,
    HIGHLIGHT_FILLS,
)


# ---------------------------------------------------------------------------
# Header row
# ---------------------------------------------------------------------------

def format_header_row(ws: Worksheet, row_num: int, num_cols: int) -> None:
    """Apply header styling to an entire row."""
    for col in range(1, num_cols + 1):
        cell = ws.cell(row=row_num, column=col)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = CENTER
        cell.border = HEADER_BORDER


# ---------------------------------------------------------------------------
# Data cell
# ---------------------------------------------------------------------------

def format_data_cell(
    ws: Worksheet,
    row_num: int,
    col_num: int,
    value,
    col_type: str = "text",
    highlight: str | None = None,
) -> None:
    """Write and format a single data cell.

    col_type is a schema field type: text, int, float, text_list, int_list, json.
    """
    cell = ws.cell(row=row_num, column=col_num)
    cell.value = value
    cell.font = DATA_FONT
    cell.border = THIN_BORDER

    if col_type in ("int", "float"):
        cell.alignment = RIGHT
        cell.number_format = "#,##0" if col_type == "int" else "#,##0.00"
    elif col_type == "json":
        cell.alignment = WRAP
    else:
        cell.alignment = LEFT

    if highlight and highlight in HIGHLIGHT_FILLS:
        cell.fill = HIGHLIGHT_FILLS[highlight]
    elif row_num % 2 == 0:
        cell.fill = ALTERNATE_FILL


# ---------------------------------------------------------------------------
# Auto column width
# ---------------------------------------------------------------------------

def auto_column_width(ws: Worksheet, min_width: int = 10, max_width: int = 55) -> None:
    """Auto-fit column widths based on content length."""
    for column in ws.columns:
        max_length = 0
        column_letter = get_column_letter(column[0].column)
        for cell in column:
            if cell.value is not None:
                max_length = max(max_length, len(str(cell.value)))
        adjusted = min(max(max_length + 2, min_width), max_width)
        ws.column_dimensions[column_letter].width = adjusted
