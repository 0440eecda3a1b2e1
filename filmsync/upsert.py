"""Create or update a film's WordPress project post.

A film is in one of two states, decided by its persisted ``wordpress``
record: NO_RECORD (create a post) or RECORD_EXISTS (update the post whose id
was recorded when it was first created).
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from filmsync.database import MEDIA_LEDGER, WORDPRESS_RECORD, MetadataStore
from filmsync.exceptions import BackendError, MetadataNotFoundError, MetadataStoreError
from filmsync.models import UNNAMED_TITLE, ContentRecord, Entity
from filmsync.utils import create_slug, filename_from_url, parse_category_string
from filmsync.wordpress import Category, Post, WordPressClient

logger = logging.getLogger(__name__)

NO_RECORD = "no_record"
RECORD_EXISTS = "record_exists"

DRAFT_STATUS = "draft"
FALLBACK_SLUG_TEXT = "untitled-film"
BUILDER_META = {"_et_pb_use_builder": "on"}
FEATURED_KEYWORDS = ("poster", "portada", "cover")


def build_slug_text(title: str, section: str, year: str | None) -> str:
    parts = [part for part in (title, section, year) if part and part != UNNAMED_TITLE]
    return " ".join(parts) or FALLBACK_SLUG_TEXT


def _match_category(name: str, categories: list[Category]) -> Optional[Category]:
    normalized = "-".join(name.lower().split())
    for category in categories:
        if normalized in category.name.lower() or normalized in category.slug.lower():
            return category

    raw = name.strip().lower()
    for category in categories:
        if raw in category.name.lower():
            return category
    return None


def resolve_category_ids(
    backend: WordPressClient,
    section: str,
    year: str | None,
    log: Optional[logging.Logger] = None,
) -> list[int]:
    """Map the comma-separated section cell to taxonomy term ids.

    Each matched term contributes its id and its parent id. Names that
    don't match, or whose search fails, are logged and left out.
    """
    log = log or logger
    ids: list[int] = []
    for name in parse_category_string(section):
        try:
            candidates = backend.search_categories(year or name)
        except BackendError as e:
            log.warning(f"  Category search failed for '{name}': {e}")
            continue

        match = _match_category(name, candidates)
        if match is None:
            log.warning(f"  Category not found: '{name}'")
            continue
        for term_id in (match.id, match.parent):
            if term_id and term_id not in ids:
                ids.append(term_id)
    return ids


def select_featured_media(media_ids: list[int], backend: WordPressClient) -> int:
    """Prefer a poster/cover image, else the first published one. 0 when none."""
    if not media_ids:
        return 0

    for media_id in media_ids:
        try:
            media = backend.get_media(media_id)
        except BackendError:
            continue
        haystacks = (media.title.lower(), filename_from_url(media.source_url), media.alt_text.lower())
        if any(kw in text for kw in FEATURED_KEYWORDS for text in haystacks):
            return media_id

    return media_ids[0]


def build_post(
    entity: Entity,
    year: str | None,
    media_ids: list[int],
    backend: WordPressClient,
    log: Optional[logging.Logger] = None,
) -> Post:
    return Post(
        title=entity.title,
        status=DRAFT_STATUS,
        slug=create_slug(build_slug_text(entity.title, entity.section, year)),
        categories=resolve_category_ids(backend, entity.section, year, log),
        featured_media=select_featured_media(media_ids, backend),
        meta=dict(BUILDER_META),
    )


def load_content_record(store: MetadataStore, entity_id: str) -> Optional[ContentRecord]:
    """The persisted record, or None when the film has never been created.

    Raises:
        MetadataStoreError: the record exists but cannot be read or parsed.
    """
    try:
        data = store.get(entity_id, WORDPRESS_RECORD)
    except MetadataNotFoundError:
        return None
    try:
        return ContentRecord.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise MetadataStoreError(f"Malformed content record for '{entity_id}': {e}") from e


def backfill_ledger_post_id(store: MetadataStore, entity_id: str, post_id: int) -> int:
    """Set post_id on ledger entries uploaded before the post existed.

    Returns the number of entries updated.
    """
    try:
        ledger = store.get(entity_id, MEDIA_LEDGER)
    except MetadataNotFoundError:
        return 0

    updated = 0
    for entry in ledger or []:
        if not entry.get("post_id"):
            entry["post_id"] = post_id
            updated += 1
    if updated:
        store.save(entity_id, MEDIA_LEDGER, ledger)
    return updated


def upsert_entity(
    entity: Entity,
    year: str | None,
    media_ids: list[int],
    *,
    backend: WordPressClient,
    store: MetadataStore,
    log: Optional[logging.Logger] = None,
) -> ContentRecord:
    """Create the film's post on first sight, update it afterwards.

    Raises:
        BackendError: the create or update call failed.
        MetadataStoreError: the existing record cannot be read.
    """
    log = log or logger
    entity_id = entity.entity_id
    record = load_content_record(store, entity_id)
    state = RECORD_EXISTS if record else NO_RECORD

    post = build_post(entity, year, media_ids, backend, log)
    now = datetime.now(timezone.utc).isoformat()

    if state == NO_RECORD:
        created = backend.create_post(post)
        record = ContentRecord(
            post_id=created.id,
            title=created.title or post.title,
            slug=created.slug or post.slug,
            status=created.status or post.status,
            created_at=created.created_at or now,
            updated_at=created.modified_at or now,
        )
        log.info(f"  ✓ Created post {record.post_id} ({record.slug})")
    else:
        updated = backend.update_post(record.post_id, post)
        record = ContentRecord(
            post_id=record.post_id,
            title=updated.title or post.title,
            slug=updated.slug or post.slug,
            status=updated.status or post.status,
            created_at=record.created_at,
            updated_at=updated.modified_at or now,
        )
        log.info(f"  ✓ Updated post {record.post_id} ({record.slug})")

    try:
        store.save(entity_id, WORDPRESS_RECORD, record.to_dict())
    except MetadataStoreError as e:
        log.warning(f"Failed to save content record for '{entity_id}': {e}")

    try:
        backfilled = backfill_ledger_post_id(store, entity_id, record.post_id)
    except MetadataStoreError as e:
        log.warning(f"Failed to backfill media ledger for '{entity_id}': {e}")
    else:
        if backfilled:
            log.debug(f"Linked {backfilled} media entries to post {record.post_id}")

    return record
