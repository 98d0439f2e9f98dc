"""
Excel styling for data workbooks.

Styling is cosmetic only: the codec never reads it back. It keeps the
workbook readable when someone opens it in Excel to fix a row by hand.
"""

from __future__ import annotations

from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet


class Colors:
    """Palette (hex codes without #)."""

    HEADER_BG = "203764"  # Navy
    HEADER_TEXT = "FFFFFF"


class Fonts:
    HEADER = Font(bold=True, color=Colors.HEADER_TEXT)


class Fills:
    HEADER = PatternFill(start_color=Colors.HEADER_BG, end_color=Colors.HEADER_BG, fill_type="solid")


MIN_COLUMN_WIDTH = 8
MAX_COLUMN_WIDTH = 50


def apply_header_row(ws: Worksheet, row: int = 1) -> None:
    """Bold white-on-navy header cells."""
    for cell in ws[row]:
        cell.font = Fonts.HEADER
        cell.fill = Fills.HEADER
        cell.alignment = Alignment(horizontal="center", vertical="center")


def freeze_panes(ws: Worksheet, row: int = 2, col: int = 1) -> None:
    """Freeze everything above `row` and left of `col`."""
    ws.freeze_panes = ws.cell(row=row, column=col)


def autosize_columns(ws: Worksheet) -> None:
    """Width from the longest value per column, clamped."""
    widths: dict[int, int] = {}
    for row in ws.iter_rows(values_only=True):
        for idx, value in enumerate(row, start=1):
            length = len(str(value)) if value is not None else 0
            widths[idx] = max(widths.get(idx, 0), length)
    for idx, width in widths.items():
        ws.column_dimensions[get_column_letter(idx)].width = min(
            max(width + 2, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH
        )
