"""
Domain package.

Pure types and rules: errors, the collection registry, record helpers,
validation and settings models. No I/O.
"""

from sheetledger.domain.errors import (
    AuditError,
    ConflictError,
    DuplicateIdError,
    MalformedWorkbookError,
    NotFoundError,
    RemoteFileNotFoundError,
    RemoteStoreError,
    SheetLedgerError,
    TransportError,
    UnknownCollectionError,
)
from sheetledger.domain.records import AuditAction, Collections, LineType, Record

__all__ = [
    "AuditAction",
    "AuditError",
    "Collections",
    "ConflictError",
    "DuplicateIdError",
    "LineType",
    "MalformedWorkbookError",
    "NotFoundError",
    "Record",
    "RemoteFileNotFoundError",
    "RemoteStoreError",
    "SheetLedgerError",
    "TransportError",
    "UnknownCollectionError",
]
