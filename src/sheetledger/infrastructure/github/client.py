"""
Remote Store Client for workbooks kept in a GitHub repository.

Byte-level transport only: this module never interprets file content.

Endpoints:
    list   GET {api}/repos/{owner}/{repo}/contents/{data_path}?ref={branch}
    read   GET {raw}/{owner}/{repo}/{branch}/{data_path}/{name}      (no auth)
           GET {api}/repos/{owner}/{repo}/contents/{data_path}/{name} (fallback)
    write  PUT {api}/repos/{owner}/{repo}/contents/{data_path}/{name}
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any

import requests

from sheetledger.domain.errors import (
    ConflictError,
    RemoteFileNotFoundError,
    TransportError,
)
from sheetledger.domain.settings import GitHubSettings

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = (".xlsx", ".xls", ".xlsm", ".xlsb")


@dataclass(frozen=True, slots=True)
class RemoteFile:
    """Metadata of a workbook in the repository data path."""

    name: str
    path: str
    size: int
    sha: str
    download_url: str | None


class GitHubStoreClient:
    """
    Fetch and commit workbook bytes through the GitHub REST API.

    Usage:
        client = GitHubStoreClient(settings.github)
        data = client.fetch_file("Finance_Data.xlsx")
        sha = client.put_file("Finance_Data.xlsx", data, "Update data file")
    """

    def __init__(
        self,
        settings: GitHubSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    # ========================================================================
    # URLs and headers
    # ========================================================================

    @property
    def _repo_url(self) -> str:
        s = self.settings
        return f"{s.api_base}/repos/{s.owner}/{s.repository}"

    def _contents_url(self, filename: str | None = None) -> str:
        path = self.settings.data_path
        if filename:
            path = f"{path}/{filename}" if path else filename
        return f"{self._repo_url}/contents/{path}"

    def _raw_url(self, filename: str) -> str:
        s = self.settings
        path = f"{s.data_path}/{filename}" if s.data_path else filename
        return f"{s.raw_base}/{s.owner}/{s.repository}/{s.branch}/{path}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.settings.token:
            headers["Authorization"] = f"token {self.settings.token}"
        return headers

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Issue a request, mapping network failures to TransportError."""
        kwargs.setdefault("timeout", self.settings.timeout)
        try:
            return self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _fail(response: requests.Response, action: str) -> TransportError:
        return TransportError(
            f"{action} failed: HTTP {response.status_code} {response.reason}",
            status_code=response.status_code,
        )

    @staticmethod
    def _json(response: requests.Response, action: str) -> Any:
        """Response body as JSON; a non-JSON body (proxy or login page) is a TransportError."""
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{action} returned a non-JSON response: {e}") from e

    # ========================================================================
    # Read
    # ========================================================================

    def test_connection(self) -> bool:
        """Check that the repository is reachable with the configured token."""
        try:
            response = self._request("GET", self._repo_url, headers=self._headers())
        except TransportError as e:
            logger.warning("GitHub connection test failed: %s", e)
            return False
        if response.status_code != 200:
            logger.warning("GitHub connection test failed: HTTP %s", response.status_code)
            return False
        return True

    def list_files(self) -> list[RemoteFile]:
        """
        List workbook files in the data path.

        Raises:
            RemoteFileNotFoundError: data path does not exist
            TransportError: network / auth failure
        """
        response = self._request(
            "GET",
            self._contents_url(),
            headers=self._headers(),
            params={"ref": self.settings.branch},
        )
        if response.status_code == 404:
            raise RemoteFileNotFoundError(
                f"Data path '{self.settings.data_path}' not found in "
                f"{self.settings.owner}/{self.settings.repository}"
            )
        if response.status_code != 200:
            raise self._fail(response, "Listing data files")

        entries = self._json(response, "Listing data files")
        if not isinstance(entries, list):
            raise TransportError(f"Data path '{self.settings.data_path}' is not a directory")

        files = [
            RemoteFile(
                name=entry["name"],
                path=entry.get("path", ""),
                size=entry.get("size", 0),
                sha=entry.get("sha", ""),
                download_url=entry.get("download_url"),
            )
            for entry in entries
            if entry.get("type") == "file"
            and entry.get("name", "").lower().endswith(EXCEL_EXTENSIONS)
        ]
        logger.debug("Found %d workbook files in %s", len(files), self.settings.data_path)
        return files

    def find_file(self, filename: str) -> RemoteFile | None:
        """Case-insensitive lookup in the listing."""
        wanted = filename.lower()
        for remote in self.list_files():
            if remote.name.lower() == wanted:
                return remote
        return None

    def file_exists(self, filename: str) -> bool:
        try:
            return self.find_file(filename) is not None
        except RemoteFileNotFoundError:
            return False

    def fetch_file(self, filename: str) -> bytes:
        """
        Download a workbook's bytes.

        Tries the unauthenticated raw URL first, then the authenticated
        contents API.

        Raises:
            RemoteFileNotFoundError: no file matches (case-insensitive)
            TransportError: both download paths failed
        """
        remote = self.find_file(filename)
        if remote is None:
            raise RemoteFileNotFoundError(f"File '{filename}' not found in repository")

        try:
            return self._fetch_raw(remote.name)
        except TransportError as e:
            logger.warning("Direct download failed, trying API method: %s", e)

        return self._fetch_via_api(remote.name)

    def _fetch_raw(self, filename: str) -> bytes:
        url = self._raw_url(filename)
        response = self._request("GET", url)
        if response.status_code != 200:
            raise self._fail(response, f"Raw download of {filename}")
        logger.info("Downloaded %s (%d bytes)", filename, len(response.content))
        return response.content

    def _fetch_via_api(self, filename: str) -> bytes:
        response = self._request("GET", self._contents_url(filename), headers=self._headers())
        if response.status_code != 200:
            raise self._fail(response, f"Contents lookup of {filename}")

        body = self._json(response, f"Contents lookup of {filename}") or {}
        download_url = body.get("download_url")
        if not download_url:
            raise TransportError(f"No download URL returned for {filename}")

        download = self._request("GET", download_url, headers=self._headers())
        if download.status_code != 200:
            raise self._fail(download, f"API download of {filename}")
        logger.info("Downloaded %s via API (%d bytes)", filename, len(download.content))
        return download.content

    # ========================================================================
    # Write
    # ========================================================================

    def _current_sha(self, filename: str) -> str | None:
        """Blob sha of the existing file, or None when it does not exist yet."""
        response = self._request(
            "GET",
            self._contents_url(filename),
            headers=self._headers(),
            params={"ref": self.settings.branch},
        )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise self._fail(response, f"Revision lookup of {filename}")
        return (self._json(response, f"Revision lookup of {filename}") or {}).get("sha")

    def put_file(
        self,
        filename: str,
        data: bytes,
        message: str | None = None,
        sha: str | None = None,
    ) -> str:
        """
        Create or update a workbook.

        Args:
            filename: Name inside the data path
            data: Workbook bytes
            message: Commit message
            sha: Previous blob sha; looked up when omitted

        Returns:
            Commit sha of the new revision

        Raises:
            ConflictError: sha is stale (file changed remotely)
            TransportError: any other failure
        """
        if not self.settings.token:
            raise TransportError("A GitHub token is required to write files")

        if sha is None:
            sha = self._current_sha(filename)

        payload: dict[str, Any] = {
            "message": message or f"Update data file: {filename}",
            "content": base64.b64encode(data).decode("ascii"),
            "branch": self.settings.branch,
        }
        if sha:
            payload["sha"] = sha

        response = self._request(
            "PUT", self._contents_url(filename), headers=self._headers(), json=payload
        )

        if response.status_code == 409 or (
            response.status_code == 422 and sha and "sha" in response.text.lower()
        ):
            raise ConflictError(
                f"{filename} was modified remotely (revision {sha} is stale); reload and retry"
            )
        if response.status_code not in (200, 201):
            raise self._fail(response, f"Commit of {filename}")

        body = self._json(response, f"Commit of {filename}") or {}
        revision = (body.get("commit") or {}).get("sha", "")
        logger.info(
            "%s %s (%d bytes) at %s",
            "Updated" if sha else "Created",
            filename,
            len(data),
            revision[:7] or "?",
        )
        return revision
