"""
GitHub package - remote workbook transport.
"""

from sheetledger.infrastructure.github.client import GitHubStoreClient, RemoteFile

__all__ = ["GitHubStoreClient", "RemoteFile"]
