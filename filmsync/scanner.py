"""Recursive Google Drive folder scanner."""
import logging

from filmsync.exceptions import RemoteStoreError
from filmsync.google_api import FOLDER_MIME_TYPE, DriveClient
from filmsync.models import RemoteFile

logger = logging.getLogger(__name__)


def scan(drive: DriveClient, root_folder_id: str, log: logging.Logger | None = None) -> list[RemoteFile]:
    """List every leaf file below root_folder_id with its folder lineage.

    A failure listing the root propagates as RemoteStoreError. A failure
    listing a subfolder is logged and that subtree is skipped.
    """
    log = log or logger
    return _scan_folder(drive, root_folder_id, "", log)


def _scan_folder(drive: DriveClient, folder_id: str, current_path: str, log: logging.Logger) -> list[RemoteFile]:
    log.debug(f"Listing folder {folder_id} (path: {current_path or '/'})")
    items = drive.list_children(folder_id)

    files: list[RemoteFile] = []
    for item in items:
        name = item.get("name", "")
        if item.get("mimeType") == FOLDER_MIME_TYPE:
            sub_path = f"{current_path}/{name}" if current_path else name
            try:
                files.extend(_scan_folder(drive, item["id"], sub_path, log))
            except RemoteStoreError as e:
                log.warning(f"Failed to list subfolder '{sub_path}', skipping it: {e}")
            continue

        folder_name = current_path.split("/")[-1] if current_path else ""
        try:
            size = int(item.get("size") or 0)
        except (TypeError, ValueError):
            size = 0
        files.append(RemoteFile(
            id=item["id"],
            name=name,
            mime_type=item.get("mimeType", ""),
            size=size,
            created_time=item.get("createdTime", ""),
            modified_time=item.get("modifiedTime", ""),
            folder_path=current_path,
            folder_name=folder_name,
        ))

    log.debug(f"Found {len(files)} files below {current_path or 'root'}")
    return files
