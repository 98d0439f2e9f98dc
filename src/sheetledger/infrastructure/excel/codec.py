"""
Workbook Codec.

Bidirectional conversion between xlsx bytes and
``{sheet_name: [record, ...]}``. Pure: no files, no network.

Decoding rules:
    - Every sheet becomes a collection named after the sheet
    - Row 1 is the header; columns with a blank header are ignored
    - Blank rows are skipped; blank cells decode to ""
    - Dates decode to ISO-8601 strings, numbers stay numbers

Encoding rules:
    - One sheet per non-empty collection
    - Header is the ordered union of keys across all records, so sparse
      records never lose fields; missing values are written as ""
    - Empty collections are omitted unless a header row is supplied
"""

from __future__ import annotations

import io
import json
import logging
import zipfile
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils.exceptions import InvalidFileException

from sheetledger.domain.errors import MalformedWorkbookError
from sheetledger.domain.records import Collections, Record
from sheetledger.infrastructure.excel.styles import (
    apply_header_row,
    autosize_columns,
    freeze_panes,
)

if TYPE_CHECKING:
    from openpyxl.worksheet.worksheet import Worksheet

logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ============================================================================
# Decode
# ============================================================================


def decode_workbook(data: bytes) -> Collections:
    """
    Parse workbook bytes into collections.

    Args:
        data: Raw xlsx bytes

    Returns:
        Dict of {sheet_name: [record, ...]} in sheet order

    Raises:
        MalformedWorkbookError: bytes are not a readable xlsx container
    """
    if not isinstance(data, (bytes, bytearray)) or not data:
        raise MalformedWorkbookError("Workbook data is empty or not bytes")

    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError, OSError) as e:
        raise MalformedWorkbookError(f"Not a readable workbook: {e}") from e

    try:
        result: Collections = {}
        for ws in wb.worksheets:
            result[ws.title] = read_sheet(ws)
    except (KeyError, ValueError, TypeError) as e:
        raise MalformedWorkbookError(f"Workbook content could not be parsed: {e}") from e
    finally:
        wb.close()

    logger.debug(
        "Decoded %d sheets (%d rows)",
        len(result),
        sum(len(rows) for rows in result.values()),
    )
    return result


def read_sheet(ws: "Worksheet") -> list[Record]:
    """
    Read one worksheet into records.

    Header cells define field names; duplicated header names keep the
    right-most column's value.
    """
    rows = ws.iter_rows(values_only=True)
    header_row = next(rows, None)
    if not header_row:
        return []

    columns: list[tuple[int, str]] = []
    for idx, header in enumerate(header_row):
        if header is None:
            continue
        name = str(header).strip()
        if name:
            columns.append((idx, name))

    records: list[Record] = []
    for row in rows:
        if not row or all(v is None or v == "" for v in row):
            continue
        record: Record = {}
        for idx, name in columns:
            value = row[idx] if idx < len(row) else None
            record[name] = coerce_cell(value)
        records.append(record)
    return records


def coerce_cell(value: Any) -> Any:
    """Normalize a cell value to str / int / float."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, str):
        return value
    return str(value)


# ============================================================================
# Encode
# ============================================================================


def encode_workbook(
    collections: Mapping[str, Iterable[Record]],
    headers: Mapping[str, Iterable[str]] | None = None,
) -> bytes:
    """
    Serialize collections into xlsx bytes.

    Args:
        collections: Dict of {sheet_name: [record, ...]}
        headers: Optional header rows per sheet. Listed columns come
            first; an empty collection with a header is written as a
            header-only sheet instead of being omitted.

    Returns:
        xlsx bytes
    """
    headers = headers or {}
    wb = Workbook()
    wb.remove(wb.active)

    written = 0
    for name, records in collections.items():
        records = list(records)
        hint = list(headers.get(name, ()))
        if not records and not hint:
            logger.debug("Skipping empty collection %s", name)
            continue

        columns = collect_columns(records, hint)
        ws = wb.create_sheet(title=name)
        write_sheet(ws, columns, records)
        written += 1

    if written == 0:
        # openpyxl cannot save a workbook without sheets
        wb.create_sheet(title="Sheet1")

    buffer = io.BytesIO()
    wb.save(buffer)
    wb.close()
    logger.debug("Encoded %d sheets", written)
    return buffer.getvalue()


def collect_columns(records: Iterable[Record], hint: Iterable[str] = ()) -> list[str]:
    """Ordered union of hint columns and every key seen in records."""
    seen: dict[str, None] = dict.fromkeys(hint)
    for record in records:
        for key in record:
            seen.setdefault(key, None)
    return list(seen)


def write_sheet(ws: "Worksheet", columns: list[str], records: list[Record]) -> None:
    """Write header + rows, then apply cosmetic styling."""
    ws.append(columns)
    for record in records:
        ws.append([to_cell(record.get(col, "")) for col in columns])
        # Literal text that looks like a formula stays text
        for cell in ws[ws.max_row]:
            if isinstance(cell.value, str) and cell.value.startswith("="):
                cell.data_type = "s"

    apply_header_row(ws)
    freeze_panes(ws)
    autosize_columns(ws)


def to_cell(value: Any) -> Any:
    """Scalar suitable for openpyxl; structured values become JSON text."""
    if value is None:
        return ""
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, (list, tuple, dict, set)):
        value = json.dumps(list(value) if isinstance(value, set) else value, default=str)
    elif isinstance(value, (date, time)):
        value = value.isoformat()
    else:
        value = str(value)
    return ILLEGAL_CHARACTERS_RE.sub("", value)


class WorkbookCodec:
    """
    Injectable wrapper around decode_workbook / encode_workbook.

    Usage:
        codec = WorkbookCodec()
        sheets = codec.decode(data)
        data = codec.encode(sheets)
    """

    def decode(self, data: bytes) -> Collections:
        return decode_workbook(data)

    def encode(
        self,
        collections: Mapping[str, Iterable[Record]],
        headers: Mapping[str, Iterable[str]] | None = None,
    ) -> bytes:
        return encode_workbook(collections, headers)
