"""
Template workbook generator.

Produces a workbook containing every registered collection with its
default header row, filled with whatever dataset the caller supplies
(usually the sample dataset). Empty collections such as AuditLog still
get a header-only sheet so a new repository starts with the full schema.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sheetledger.domain.records import Collections
from sheetledger.domain.registry import default_headers, registered_names
from sheetledger.infrastructure.excel.codec import encode_workbook

logger = logging.getLogger(__name__)

TEMPLATE_FILENAME = "Finance_Data_Template.xlsx"


def generate_template(dataset: Collections) -> bytes:
    """
    Build template bytes.

    Registered collections come first in registry order, followed by
    any extra sheets in the dataset.
    """
    ordered: Collections = {name: list(dataset.get(name, [])) for name in registered_names()}
    for name, records in dataset.items():
        ordered.setdefault(name, list(records))
    return encode_workbook(ordered, headers=default_headers())


def write_template(dataset: Collections, path: Path | str) -> Path:
    """Write a template workbook to disk and return its path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(generate_template(dataset))
    logger.info("Template written to %s", path)
    return path
