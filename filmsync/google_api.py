"""Google Drive and Sheets REST clients.

Both clients talk to the v3/v4 REST endpoints through a ``requests`` session.
In production that session is a ``google.auth`` ``AuthorizedSession`` built
from a service-account file; tests pass a plain mock session.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from filmsync.exceptions import RemoteStoreError

DRIVE_SCOPE = "https://www.googleapis.com/auth/drive.readonly"
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets.readonly"
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

_LIST_FIELDS = "nextPageToken, files(id, name, mimeType, size, createdTime, modifiedTime)"


def authorized_session(credentials_path: Path, scopes: list[str]) -> AuthorizedSession:
    """Build an authenticated session from a service-account JSON file."""
    try:
        credentials = service_account.Credentials.from_service_account_file(
            str(credentials_path), scopes=scopes
        )
    except (OSError, ValueError) as e:
        raise RemoteStoreError(f"Failed to load Google credentials from {credentials_path}: {e}") from e
    return AuthorizedSession(credentials)


class DriveClient:
    """Minimal Google Drive v3 client: list a folder, download a file."""

    def __init__(
        self,
        session: requests.Session,
        *,
        base_url: str = "https://www.googleapis.com/drive/v3",
        timeout_s: int = 60,
        logger: Optional[logging.Logger] = None,
    ):
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_credentials(cls, credentials_path: Path, **kwargs) -> "DriveClient":
        return cls(authorized_session(credentials_path, [DRIVE_SCOPE]), **kwargs)

    def list_children(self, folder_id: str) -> list[dict[str, Any]]:
        """Return all non-trashed children of a folder, following pagination."""
        params = {
            "q": f"'{folder_id}' in parents and trashed=false",
            "fields": _LIST_FIELDS,
            "pageSize": 1000,
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
        }
        items: list[dict[str, Any]] = []
        while True:
            try:
                resp = self._session.get(f"{self._base_url}/files", params=params, timeout=self._timeout_s)
                resp.raise_for_status()
                payload = resp.json()
            except (requests.RequestException, ValueError) as e:
                raise RemoteStoreError(f"Failed to list folder {folder_id}: {e}") from e

            items.extend(payload.get("files", []))
            page_token = payload.get("nextPageToken")
            if not page_token:
                return items
            params["pageToken"] = page_token

    def download(self, file_id: str, dest_path: Path) -> None:
        """Stream a file's content to dest_path, creating parent folders."""
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = dest_path.with_name(dest_path.name + ".part")
        try:
            with self._session.get(
                f"{self._base_url}/files/{file_id}",
                params={"alt": "media", "supportsAllDrives": "true"},
                stream=True,
                timeout=self._timeout_s,
            ) as resp:
                resp.raise_for_status()
                with open(tmp_path, "wb") as fh:
                    for chunk in resp.iter_content(chunk_size=1024 * 256):
                        if chunk:
                            fh.write(chunk)
            tmp_path.replace(dest_path)
        except (requests.RequestException, OSError) as e:
            tmp_path.unlink(missing_ok=True)
            raise RemoteStoreError(f"Failed to download {file_id}: {e}") from e

        self.logger.debug(f"Downloaded file to: {dest_path}")


class SheetsClient:
    """Read-only Google Sheets v4 client."""

    def __init__(
        self,
        session: requests.Session,
        *,
        base_url: str = "https://sheets.googleapis.com/v4",
        timeout_s: int = 60,
    ):
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    @classmethod
    def from_credentials(cls, credentials_path: Path, **kwargs) -> "SheetsClient":
        return cls(authorized_session(credentials_path, [SHEETS_SCOPE]), **kwargs)

    def read_range(self, sheet_id: str, cell_range: str) -> list[list[Any]]:
        """Return the rectangular grid of values for an A1 range."""
        url = f"{self._base_url}/spreadsheets/{sheet_id}/values/{requests.utils.quote(cell_range, safe='')}"
        try:
            resp = self._session.get(url, timeout=self._timeout_s)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise RemoteStoreError(f"Failed to read range {cell_range} from sheet {sheet_id}: {e}") from e
        return payload.get("values", [])
