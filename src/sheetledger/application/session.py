"""
Session Synchronizer - load on startup, save on demand.

    load:  client.fetch_file -> codec.decode -> reconcile -> store.populate
    save:  store.snapshot -> flatten -> codec.encode -> client.put_file

Remote and codec failures never escape: ``load`` falls back to the
default dataset and ``save`` reports failure while keeping the
unsaved-changes flag set, so the caller can retry or export locally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from sheetledger.application.reconcile import flatten, reconcile
from sheetledger.application.seed import build_default_dataset
from sheetledger.application.store import CollectionStore
from sheetledger.domain.errors import MalformedWorkbookError, RemoteStoreError
from sheetledger.domain.records import AuditAction, Collections
from sheetledger.infrastructure.excel.codec import WorkbookCodec

logger = logging.getLogger(__name__)

SOURCE_REMOTE = "remote"
SOURCE_DEFAULTS = "defaults"
SOURCE_FILE = "file"


class RemoteStore(Protocol):
    """Byte transport the synchronizer needs (GitHubStoreClient satisfies it)."""

    def fetch_file(self, filename: str) -> bytes: ...

    def put_file(self, filename: str, data: bytes, message: str | None = None) -> str: ...


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    SAVING = "saving"


@dataclass(slots=True)
class LoadResult:
    """Outcome of a load; ``reason`` explains a fallback."""

    source: str
    reason: str = ""

    @property
    def used_defaults(self) -> bool:
        return self.source == SOURCE_DEFAULTS


@dataclass(slots=True)
class SaveResult:
    """Outcome of a save; ``error`` is set exactly when ``success`` is False."""

    success: bool
    revision: str = ""
    error: Exception | None = None


class SessionSynchronizer:
    """
    Orchestrates load/save between the store and the remote workbook.

    Args:
        store: The session's collection store
        codec: Workbook encoder/decoder
        client: Remote byte store; None works offline (load falls back)
        filename: Canonical workbook name
    """

    def __init__(
        self,
        store: CollectionStore,
        codec: WorkbookCodec,
        client: RemoteStore | None,
        filename: str = "Finance_Data.xlsx",
    ) -> None:
        self.store = store
        self.codec = codec
        self.client = client
        self.filename = filename
        self.state = SessionState.UNINITIALIZED
        self._unsaved = False
        self.store.add_listener(self._on_mutation)

    @property
    def has_unsaved_changes(self) -> bool:
        return self._unsaved

    def _on_mutation(self, collection: str, action: AuditAction) -> None:
        self._unsaved = True

    # ========================================================================
    # Load
    # ========================================================================

    def load(self) -> LoadResult:
        """
        Fetch, decode and reconcile the remote workbook into the store.

        Any failure while fetching or decoding falls back to the default
        dataset, so the session always ends READY.
        Unsaved in-memory changes are discarded either way.
        """
        self.state = SessionState.LOADING
        try:
            sheets, result = self._fetch_remote()
        except Exception as e:
            logger.warning(
                "Could not load %s, using default data: %s", self.filename, e, exc_info=True
            )
            sheets = build_default_dataset()
            result = LoadResult(SOURCE_DEFAULTS, reason=str(e))

        self._install(sheets)
        logger.info("Session ready (source: %s)", result.source)
        return result

    def _fetch_remote(self) -> tuple[Collections, LoadResult]:
        if self.client is None:
            raise RemoteStoreError("No remote store configured")
        data = self.client.fetch_file(self.filename)
        sheets = self.codec.decode(data)
        logger.info("Loaded %s: %d sheets", self.filename, len(sheets))
        return sheets, LoadResult(SOURCE_REMOTE)

    def load_from_file(self, path: Path | str) -> LoadResult:
        """
        Replace the session with a local workbook.

        Raises:
            MalformedWorkbookError: the file is not a readable workbook
            OSError: the file cannot be read
        """
        path = Path(path)
        self.state = SessionState.LOADING
        try:
            sheets = self.codec.decode(path.read_bytes())
        except (MalformedWorkbookError, OSError):
            self.state = SessionState.READY if self.store.collection_names() else SessionState.UNINITIALIZED
            raise
        self._install(sheets)
        logger.info("Loaded local workbook %s", path)
        return LoadResult(SOURCE_FILE)

    def _install(self, sheets: Collections) -> None:
        self.store.populate(reconcile(sheets))
        self._unsaved = False
        self.state = SessionState.READY

    # ========================================================================
    # Save
    # ========================================================================

    def encode(self) -> tuple[bytes, int]:
        """Encode the current state; returns the bytes and the store revision they reflect."""
        revision = self.store.revision
        snapshot = self.store.snapshot()
        return self.codec.encode(flatten(snapshot)), revision

    def save(self, message: str | None = None) -> SaveResult:
        """
        Encode the store and commit it to the remote workbook.

        Mutations made after the snapshot keep the unsaved flag set even
        when the commit succeeds.
        """
        if self.client is None:
            error = RemoteStoreError("No remote store configured")
            logger.error("Save failed: %s", error)
            return SaveResult(False, error=error)

        self.state = SessionState.SAVING
        try:
            data, revision = self.encode()
            commit = self.client.put_file(self.filename, data, message=message)
        except (RemoteStoreError, ValueError, TypeError) as e:
            logger.error("Save of %s failed, changes kept in memory: %s", self.filename, e)
            return SaveResult(False, error=e)
        finally:
            self.state = SessionState.READY

        if self.store.revision == revision:
            self._unsaved = False
        else:
            logger.info("Store changed during save; unsaved changes remain")
        logger.info("Saved %s (%d bytes)", self.filename, len(data))
        return SaveResult(True, revision=commit)

    def export_to_file(self, path: Path | str) -> Path:
        """Write the current state to a local workbook; does not touch the unsaved flag."""
        path = Path(path)
        data, _ = self.encode()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Exported workbook to %s (%d bytes)", path, len(data))
        return path

    def summary(self) -> dict[str, Any]:
        """Record counts per collection plus session status, for display."""
        return {
            "state": self.state.value,
            "unsaved": self._unsaved,
            "collections": {name: len(self.store.list(name)) for name in self.store.collection_names()},
        }
