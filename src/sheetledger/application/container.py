"""
Dependency injection container for the application.

Builds the settings, codec, remote client, store and session lazily so
commands only pay for what they touch.
"""

import logging
from pathlib import Path
from typing import Optional

from sheetledger.application.audit import AuditLogger
from sheetledger.application.session import SessionSynchronizer
from sheetledger.application.store import CollectionStore
from sheetledger.domain.settings import AppSettings
from sheetledger.infrastructure.config.repository import SettingsRepository
from sheetledger.infrastructure.excel.codec import WorkbookCodec
from sheetledger.infrastructure.github.client import GitHubStoreClient

logger = logging.getLogger(__name__)


class Container:
    """
    Dependency injection container.

    Manages the creation and lifecycle of the session and its collaborators.
    """

    def __init__(self, config_dir: Optional[Path] = None, settings: Optional[AppSettings] = None):
        """
        Initialize the container.

        Args:
            config_dir: Directory holding the settings file
            settings: Settings override (skips the settings file)
        """
        self.config_dir = Path(config_dir) if config_dir else Path.cwd() / "config"

        self._settings = settings
        self._settings_repository: Optional[SettingsRepository] = None
        self._codec: Optional[WorkbookCodec] = None
        self._client: Optional[GitHubStoreClient] = None
        self._store: Optional[CollectionStore] = None
        self._session: Optional[SessionSynchronizer] = None

    @property
    def settings_repository(self) -> SettingsRepository:
        """Get the settings repository."""
        if self._settings_repository is None:
            self._settings_repository = SettingsRepository(self.config_dir)
        return self._settings_repository

    @property
    def settings(self) -> AppSettings:
        """Get the application settings (loaded once)."""
        if self._settings is None:
            self._settings = self.settings_repository.load()
        return self._settings

    @property
    def codec(self) -> WorkbookCodec:
        if self._codec is None:
            self._codec = WorkbookCodec()
        return self._codec

    @property
    def client(self) -> Optional[GitHubStoreClient]:
        """Get the GitHub client, or None when no repository is configured."""
        if self._client is None and self.settings.github.is_configured:
            self._client = GitHubStoreClient(self.settings.github)
        return self._client

    @property
    def store(self) -> CollectionStore:
        if self._store is None:
            self._store = CollectionStore(AuditLogger())
        return self._store

    @property
    def session(self) -> SessionSynchronizer:
        """Get the session synchronizer wired to the store and remote client."""
        if self._session is None:
            self._session = SessionSynchronizer(
                store=self.store,
                codec=self.codec,
                client=self.client,
                filename=self.settings.workbook_filename,
            )
        return self._session

    def reset(self) -> None:
        """Reset all cached instances."""
        self._settings_repository = None
        self._codec = None
        self._client = None
        self._store = None
        self._session = None

        logger.info("Container reset - all instances cleared")
