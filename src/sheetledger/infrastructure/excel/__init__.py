"""
Excel package - xlsx encoding/decoding and template generation.
"""

from sheetledger.infrastructure.excel.codec import (
    WorkbookCodec,
    decode_workbook,
    encode_workbook,
)
from sheetledger.infrastructure.excel.template import generate_template, write_template

__all__ = [
    "WorkbookCodec",
    "decode_workbook",
    "encode_workbook",
    "generate_template",
    "write_template",
]
