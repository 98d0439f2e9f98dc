"""
Error taxonomy for SheetLedger.

Codec and transport errors are raised by the infrastructure layer and
caught at the session boundary. Store errors are mostly reported as
return values; only UnknownCollectionError propagates, because it
signals a programming error in the caller.
"""

from __future__ import annotations


class SheetLedgerError(Exception):
    """Base class for all SheetLedger errors."""


# ============================================================================
# Codec
# ============================================================================


class MalformedWorkbookError(SheetLedgerError):
    """Bytes could not be parsed as a spreadsheet container."""


# ============================================================================
# Remote store
# ============================================================================


class RemoteStoreError(SheetLedgerError):
    """Base class for remote repository failures."""


class RemoteFileNotFoundError(RemoteStoreError, FileNotFoundError):
    """Requested workbook does not exist in the repository data path."""


class TransportError(RemoteStoreError):
    """Network, HTTP or authentication failure talking to the remote store."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConflictError(RemoteStoreError):
    """Revision marker was stale: the file changed remotely since it was read."""


# ============================================================================
# Collection store
# ============================================================================


class DuplicateIdError(SheetLedgerError):
    """A record with the same id already exists (tolerated by create)."""


class NotFoundError(SheetLedgerError):
    """No record with the requested id."""


class UnknownCollectionError(SheetLedgerError, KeyError):
    """Mutation against a collection name that was never declared."""

    def __init__(self, collection: str) -> None:
        super().__init__(collection)
        self.collection = collection

    def __str__(self) -> str:
        return f"Collection '{self.collection}' is not declared"


class AuditError(SheetLedgerError):
    """An audit entry could not be produced; the triggering mutation fails."""


def record_not_found(collection: str, record_id: str) -> str:
    """Return message for a missing record."""
    return f"Record '{record_id}' not found in {collection}"


def duplicate_record(collection: str, record_id: str) -> str:
    """Return message for an idempotent re-insert."""
    return f"Record '{record_id}' already exists in {collection}; keeping existing"
