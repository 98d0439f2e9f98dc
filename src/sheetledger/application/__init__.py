"""
Application package.

Use cases over the domain: the collection store, audit logging,
reconciliation, default data and the load/save session.
"""

from sheetledger.application.audit import Actor, AuditLogger
from sheetledger.application.reconcile import flatten, reconcile
from sheetledger.application.seed import build_default_dataset
from sheetledger.application.session import LoadResult, SaveResult, SessionState, SessionSynchronizer
from sheetledger.application.store import CollectionStore

__all__ = [
    "Actor",
    "AuditLogger",
    "CollectionStore",
    "LoadResult",
    "SaveResult",
    "SessionState",
    "SessionSynchronizer",
    "build_default_dataset",
    "flatten",
    "reconcile",
]
