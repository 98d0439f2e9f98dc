"""
Shared fixtures for SheetLedger tests.

The store gets a fixed clock and sequential audit ids so audit entries
can be asserted exactly; the remote store is an in-memory fake with the
same fetch/put surface as GitHubStoreClient.
"""

from __future__ import annotations

import itertools
import logging
from datetime import datetime, timezone

import pytest

from sheetledger.application.audit import AuditLogger
from sheetledger.application.reconcile import reconcile
from sheetledger.application.seed import build_default_dataset
from sheetledger.application.session import SessionSynchronizer
from sheetledger.application.store import CollectionStore
from sheetledger.domain.errors import RemoteFileNotFoundError
from sheetledger.infrastructure.excel.codec import WorkbookCodec

FIXED_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
WORKBOOK = "Finance_Data.xlsx"


class FakeRemote:
    """In-memory remote store; set ``put_error`` to make commits fail."""

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.puts: list[tuple[str, bytes, str | None]] = []
        self.put_error: Exception | None = None
        self.on_put = None

    def fetch_file(self, filename: str) -> bytes:
        if filename not in self.files:
            raise RemoteFileNotFoundError(f"File '{filename}' not found in repository")
        return self.files[filename]

    def put_file(self, filename: str, data: bytes, message: str | None = None) -> str:
        if self.on_put:
            self.on_put()
        if self.put_error:
            raise self.put_error
        self.puts.append((filename, data, message))
        self.files[filename] = data
        return f"commit{len(self.puts):04d}"


@pytest.fixture
def audit_logger() -> AuditLogger:
    counter = itertools.count(1)
    return AuditLogger(clock=lambda: FIXED_TIME, id_factory=lambda: f"AUDIT-{next(counter):04d}")


@pytest.fixture
def store(audit_logger) -> CollectionStore:
    return CollectionStore(audit_logger)


@pytest.fixture
def sample_store(store) -> CollectionStore:
    """Store populated with the reconciled sample dataset."""
    store.populate(reconcile(build_default_dataset(include_samples=True, now=FIXED_TIME)))
    return store


@pytest.fixture
def codec() -> WorkbookCodec:
    return WorkbookCodec()


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def session(store, codec, remote) -> SessionSynchronizer:
    return SessionSynchronizer(store, codec, remote, filename=WORKBOOK)


@pytest.fixture
def reset_logging():
    """Drop handlers installed by setup_logging so later tests do not log to closed streams."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
