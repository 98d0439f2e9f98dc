"""
Settings repository for loading and saving the settings file.

Handles file I/O and turns parse/validation failures into ValueError
with a hint, the way operators expect to see them on the console.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from sheetledger.domain.settings import AppSettings

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "sheetledger.json"
TOKEN_ENV_VAR = "GITHUB_TOKEN"


class SettingsRepository:
    """
    Repository for the settings file.

    A missing file is not an error: defaults apply, so the application
    can still start offline with the seed dataset.
    """

    def __init__(self, config_dir: Path, filename: str = SETTINGS_FILENAME):
        """
        Initialize the settings repository.

        Args:
            config_dir: Directory containing the settings file
            filename: Settings file name
        """
        self.config_dir = Path(config_dir)
        self.filename = filename

    @property
    def path(self) -> Path:
        return self.config_dir / self.filename

    def load_json_file(self) -> Dict[str, Any] | None:
        """
        Read the raw settings JSON.

        Returns:
            Parsed data, or None when the file does not exist

        Raises:
            ValueError: file is empty or not valid JSON
        """
        if not self.path.exists():
            logger.debug("Settings file not found: %s", self.path)
            return None

        content = self.path.read_text(encoding="utf-8")
        if not content.strip():
            raise ValueError(
                f"Settings file is empty: {self.path}\n"
                f"Hint: Add valid JSON content or delete the file to use defaults"
            )

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Invalid JSON in settings file: {self.path}\n"
                f"Error at line {e.lineno}, column {e.colno}: {e.msg}"
            ) from e

    def load(self) -> AppSettings:
        """
        Load and validate settings.

        The GitHub token falls back to the GITHUB_TOKEN environment
        variable so it never has to live in the settings file.

        Raises:
            ValueError: settings file is invalid
        """
        data = self.load_json_file() or {}
        try:
            settings = AppSettings(**data)
        except ValidationError as e:
            raise ValueError(f"Invalid settings in {self.path}: {e}") from e

        if not settings.github.token:
            token = os.environ.get(TOKEN_ENV_VAR)
            if token:
                settings.github.token = token
                logger.debug("Using GitHub token from %s", TOKEN_ENV_VAR)

        logger.info(
            "Loaded settings: repository=%s/%s workbook=%s",
            settings.github.owner or "?",
            settings.github.repository or "?",
            settings.workbook_filename,
        )
        return settings

    def save(self, settings: AppSettings) -> None:
        """Write settings back to disk; the token is never persisted."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        data = settings.model_dump(exclude={"github": {"token"}})
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Saved settings file: %s", self.path)
