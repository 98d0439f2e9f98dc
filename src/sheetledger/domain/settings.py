"""
Settings domain models.

Connection details for the GitHub repository that holds the workbook,
plus application-level options. Validated with Pydantic; loaded from
disk by infrastructure.config.repository.
"""

from pydantic import BaseModel, Field, field_validator


class GitHubSettings(BaseModel):
    """
    Location of the data workbook in a GitHub repository.

    The token is optional: public repositories can be read through the
    raw content URL without one, but writes always need it.
    """

    owner: str = Field(default="", description="Repository owner (user or organization)")
    repository: str = Field(default="", description="Repository name")
    branch: str = Field(default="main", description="Branch holding the data files")
    data_path: str = Field(default="data", description="Directory for workbook files")
    templates_path: str = Field(default="templates", description="Directory for templates")
    token: str | None = Field(default=None, description="Personal access token", repr=False)
    api_base: str = Field(default="https://api.github.com")
    raw_base: str = Field(default="https://raw.githubusercontent.com")
    timeout: int = Field(
        default=30,
        description="Timeout in seconds for each HTTP request",
        ge=1,
        le=300,
    )

    @field_validator("data_path", "templates_path")
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        """Paths are joined with '/', so drop leading/trailing separators."""
        return v.strip().strip("/")

    @field_validator("api_base", "raw_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_configured(self) -> bool:
        """Owner and repository are both known."""
        return bool(self.owner and self.repository)


class AppSettings(BaseModel):
    """Top-level application settings."""

    github: GitHubSettings = GitHubSettings()

    workbook_filename: str = Field(
        default="Finance_Data.xlsx",
        description="Canonical workbook loaded on startup and written on save",
    )

    log_level: str = Field(default="INFO", description="Console log level")

    log_file: str | None = Field(default=None, description="Optional log file path")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level
