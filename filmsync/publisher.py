"""Upload web-ready images to the WordPress media library exactly once."""
import logging
from pathlib import Path
from typing import Optional

from filmsync.database import MEDIA_LEDGER, MEDIA_MAP, WORDPRESS_RECORD, MetadataStore
from filmsync.exceptions import BackendError, MetadataNotFoundError, MetadataStoreError
from filmsync.models import PublishedMedium
from filmsync.utils import is_web_variant, strip_web_suffix
from filmsync.wordpress import WordPressClient

logger = logging.getLogger(__name__)


def find_web_files(workspace: Path) -> list[Path]:
    """All web-ready variants under the film workspace, in stable order."""
    if not workspace.exists():
        return []
    return sorted(p for p in workspace.rglob("*") if p.is_file() and is_web_variant(p.name))


def load_media_map(store: MetadataStore, entity_id: str) -> dict[str, int]:
    """Filename -> media id map, empty when the film has none yet.

    Raises:
        MetadataStoreError: the map exists but cannot be read.
    """
    try:
        data = store.get(entity_id, MEDIA_MAP)
    except MetadataNotFoundError:
        return {}
    try:
        return {str(name): int(media_id) for name, media_id in (data or {}).items()}
    except (AttributeError, TypeError, ValueError) as e:
        raise MetadataStoreError(f"Malformed media map for '{entity_id}': {e}") from e


def load_ledger(store: MetadataStore, entity_id: str, log: logging.Logger) -> Optional[list[PublishedMedium]]:
    """Persisted upload ledger; None when it exists but cannot be read."""
    try:
        data = store.get(entity_id, MEDIA_LEDGER)
    except MetadataNotFoundError:
        return []
    except MetadataStoreError as e:
        log.warning(f"Could not load media ledger for '{entity_id}': {e}")
        return None
    try:
        return [PublishedMedium.from_dict(item) for item in data or []]
    except (AttributeError, TypeError, ValueError) as e:
        log.warning(f"Malformed media ledger for '{entity_id}': {e}")
        return None


def existing_post_id(store: MetadataStore, entity_id: str) -> int:
    """Post id of the film's content record, 0 when none exists yet."""
    try:
        record = store.get(entity_id, WORDPRESS_RECORD)
    except (MetadataNotFoundError, MetadataStoreError):
        return 0
    try:
        return int(record.get("post_id") or 0)
    except (AttributeError, TypeError, ValueError):
        return 0


def publish(
    entity_id: str,
    entity_title: str,
    local_files: list[Path],
    existing_media_map: dict[str, int],
    *,
    backend: WordPressClient,
    store: MetadataStore,
    post_id: int = 0,
    log: Optional[logging.Logger] = None,
) -> list[int]:
    """Upload web-ready files not yet in the media map.

    Returns the distinct media ids of the merged map, historical uploads
    first. Single upload failures and bookkeeping failures are logged.
    """
    log = log or logger
    media_map = dict(existing_media_map)
    new_entries: list[PublishedMedium] = []

    for path in local_files:
        filename = path.name
        if not is_web_variant(filename):
            continue
        if filename in media_map:
            log.debug(f"  Already uploaded: {filename}")
            continue

        base = strip_web_suffix(filename)
        title = f"{entity_title} - {base}"
        alt_text = f"Image from {entity_title}"
        try:
            media = backend.upload_media(path, title, alt_text)
        except BackendError as e:
            log.warning(f"  ✗ Upload failed for {filename}: {e}")
            continue

        log.info(f"  ✓ Uploaded {filename} (media {media.id})")
        media_map[filename] = media.id
        new_entries.append(PublishedMedium(
            id=media.id,
            title=title,
            source_url=media.source_url,
            alt_text=alt_text,
            file_path=str(path),
            post_id=post_id,
        ))

    if new_entries or media_map != existing_media_map:
        try:
            store.save(entity_id, MEDIA_MAP, media_map)
        except MetadataStoreError as e:
            log.warning(f"Failed to save media map for '{entity_id}': {e}")

    if new_entries:
        ledger = load_ledger(store, entity_id, log)
        if ledger is None:
            log.warning(f"Skipping ledger update for '{entity_id}', {len(new_entries)} uploads not recorded")
        else:
            try:
                store.save(entity_id, MEDIA_LEDGER, [m.to_dict() for m in ledger + new_entries])
            except MetadataStoreError as e:
                log.warning(f"Failed to save media ledger for '{entity_id}': {e}")

    ids: list[int] = []
    for media_id in media_map.values():
        if media_id not in ids:
            ids.append(media_id)
    return ids


def publish_entity_media(
    entity_id: str,
    entity_title: str,
    workspace: Path,
    *,
    backend: WordPressClient,
    store: MetadataStore,
    log: Optional[logging.Logger] = None,
) -> list[int]:
    """Publish every web-ready image found in the film workspace.

    Raises:
        MetadataStoreError: the media map cannot be read.
    """
    log = log or logger
    files = find_web_files(workspace)
    log.debug(f"Found {len(files)} web-ready images in {workspace}")
    return publish(
        entity_id,
        entity_title,
        files,
        load_media_map(store, entity_id),
        backend=backend,
        store=store,
        post_id=existing_post_id(store, entity_id),
        log=log,
    )
