"""Decide which remote files need downloading and keep the file snapshot.

The persisted snapshot for a film is always replaced by the full filtered
scan after a pass, so files that failed to download this time are recorded
as known anyway. The local presence check on the next pass is what brings
them back into the download set.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from filmsync.database import DRIVE_FILES, MetadataStore
from filmsync.exceptions import MetadataNotFoundError, MetadataStoreError, RemoteStoreError
from filmsync.google_api import DriveClient
from filmsync.images import ImageOptimizer
from filmsync.logging_config import timer
from filmsync.models import Entity, RemoteFile
from filmsync.scanner import scan
from filmsync.utils import (
    extract_folder_id,
    is_allowed_folder,
    is_image_mime,
    is_web_variant,
    optimized_image_path,
)

logger = logging.getLogger(__name__)


@dataclass
class Reconciliation:
    """Outcome of comparing a fresh scan against the persisted snapshot."""

    to_download: list[RemoteFile] = field(default_factory=list)
    unchanged_count: int = 0
    missing_count: int = 0
    new_count: int = 0
    filtered: list[RemoteFile] = field(default_factory=list)


@dataclass
class SyncOutcome:
    reconciliation: Reconciliation
    downloaded: list[Path] = field(default_factory=list)
    optimized: list[Path] = field(default_factory=list)
    download_failures: int = 0


def filter_syncable(files: list[RemoteFile]) -> list[RemoteFile]:
    """Keep images living directly in one of the asset folders."""
    return [f for f in files if is_image_mime(f.mime_type) and is_allowed_folder(f.folder_name)]


def destination_path(workspace: Path, file: RemoteFile) -> Path:
    if file.folder_path:
        return workspace / file.folder_path / file.name
    return workspace / file.name


def reconcile(
    current_scan: list[RemoteFile],
    persisted_snapshot: Optional[list[RemoteFile]],
    local_presence_check: Callable[[RemoteFile], bool],
) -> Reconciliation:
    """Classify filtered files as new, missing locally, or unchanged.

    ``persisted_snapshot`` of None means this is the first run: everything
    that survives the filter is new.
    """
    result = Reconciliation(filtered=filter_syncable(current_scan))

    if persisted_snapshot is None:
        result.to_download = list(result.filtered)
        result.new_count = len(result.filtered)
        return result

    known_ids = {f.id for f in persisted_snapshot}
    queued: set[str] = set()
    for file in result.filtered:
        if file.id not in known_ids:
            result.new_count += 1
        elif not local_presence_check(file):
            result.missing_count += 1
        else:
            result.unchanged_count += 1
            continue
        if file.id not in queued:
            queued.add(file.id)
            result.to_download.append(file)

    return result


def load_snapshot(store: MetadataStore, entity_id: str, log: logging.Logger) -> Optional[list[RemoteFile]]:
    """Persisted snapshot, or None when there is none or it cannot be read."""
    try:
        data = store.get(entity_id, DRIVE_FILES)
    except MetadataNotFoundError:
        return None
    except MetadataStoreError as e:
        log.warning(f"Could not load file snapshot for '{entity_id}', treating as first run: {e}")
        return None

    try:
        return [RemoteFile.from_dict(item) for item in data or []]
    except (KeyError, TypeError, AttributeError) as e:
        log.warning(f"Malformed file snapshot for '{entity_id}', treating as first run: {e}")
        return None


def optimize_pending(
    files: list[RemoteFile],
    workspace: Path,
    optimizer: ImageOptimizer,
    log: logging.Logger,
) -> list[Path]:
    """Create web-ready variants for local originals that lack one."""
    written = []
    for file in files:
        source = destination_path(workspace, file)
        if is_web_variant(source.name) or not source.exists():
            continue
        target = optimized_image_path(source)
        if target.exists():
            continue
        try:
            optimizer.optimize(source, target)
        except OSError as e:
            log.warning(f"Failed to optimize {source.name}: {e}")
            continue
        written.append(target)
    return written


def sync_remote_files(
    entity: Entity,
    workspace: Path,
    drive: DriveClient,
    store: MetadataStore,
    optimizer: ImageOptimizer,
    log: logging.Logger | None = None,
) -> SyncOutcome:
    """Bring a film's workspace up to date with its Drive folder.

    The caller has already checked that the Drive link parses.

    Raises:
        RemoteStoreError: the root folder cannot be listed.
    """
    log = log or logger
    folder_id = extract_folder_id(entity.drive_link)

    with timer(f"Scan of {entity.entity_id}", log):
        current = scan(drive, folder_id, log)

    previous = load_snapshot(store, entity.entity_id, log)
    result = reconcile(current, previous, lambda f: destination_path(workspace, f).exists())
    log.info(
        f"  Files: {len(result.filtered)} tracked, {result.new_count} new, "
        f"{result.missing_count} missing, {result.unchanged_count} unchanged"
    )

    outcome = SyncOutcome(reconciliation=result)
    for file in result.to_download:
        dest = destination_path(workspace, file)
        try:
            drive.download(file.id, dest)
        except RemoteStoreError as e:
            log.warning(f"  ✗ Download failed for {file.name}: {e}")
            outcome.download_failures += 1
            continue
        outcome.downloaded.append(dest)

    outcome.optimized = optimize_pending(result.filtered, workspace, optimizer, log)
    if outcome.optimized:
        log.info(f"  Optimized {len(outcome.optimized)} images")

    try:
        store.save(entity.entity_id, DRIVE_FILES, [f.to_dict() for f in result.filtered])
    except MetadataStoreError as e:
        log.warning(f"Failed to save file snapshot for '{entity.entity_id}': {e}")

    return outcome
