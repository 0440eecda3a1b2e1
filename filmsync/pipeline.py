"""Sync pipeline - drives each film from sheet row to WordPress page."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import requests

from filmsync.change_detection import sync_remote_files
from filmsync.config import get_credentials_path, get_database_path, get_films_dir, resolve_path
from filmsync.database import MetadataStore
from filmsync.divi import TemplateStyle
from filmsync.entities import filter_by_edition, rows_to_entities
from filmsync.exceptions import EntityProcessingError, FilmSyncError
from filmsync.google_api import DriveClient, SheetsClient
from filmsync.images import ImageOptimizer
from filmsync.listing import build_listing_summary, load_listing, save_listing_summary
from filmsync.logging_config import timer
from filmsync.models import ContentRecord, Entity, FilmData
from filmsync.publisher import publish_entity_media
from filmsync.template import generate_template, load_template_style, save_template_document
from filmsync.upsert import upsert_entity
from filmsync.utils import extract_folder_id
from filmsync.wordpress import WordPressClient

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)  # (title, error)


@dataclass
class SyncContext:
    """Services and settings shared by every film in one run."""

    drive: DriveClient
    backend: WordPressClient
    store: MetadataStore
    optimizer: ImageOptimizer
    films_dir: Path
    style: TemplateStyle = field(default_factory=TemplateStyle)
    listing: Optional[dict] = None
    edition_prefix: str = "Excéntrico"
    http: Optional[requests.Session] = None


def process_single_entity(
    entity: Entity,
    year: str | None,
    ctx: SyncContext,
    log: Optional[logging.Logger] = None,
) -> ContentRecord:
    """Run every stage for one film.

    Raises:
        EntityProcessingError: workspace cannot be created or the Drive link
            does not parse.
        RemoteStoreError: the film's Drive folder cannot be listed.
        BackendError: the post cannot be created or updated.
        MetadataStoreError: the film's post record or media map cannot be read.
        OSError: the page document cannot be written.
    """
    log = log or logger
    entity_id = entity.entity_id
    workspace = ctx.films_dir / entity_id
    try:
        workspace.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise EntityProcessingError(f"Cannot create workspace {workspace}: {e}") from e

    link = entity.drive_link.strip()
    if not link:
        log.warning("  No Drive link, skipping asset sync")
    else:
        if not extract_folder_id(link):
            raise EntityProcessingError(f"Cannot extract a Drive folder id from '{link}'")
        with timer(f"Asset sync for {entity_id}", log):
            sync_remote_files(entity, workspace, ctx.drive, ctx.store, ctx.optimizer, log)

    if year:
        summary = build_listing_summary(
            entity.title, entity.section, entity.direction, ctx.listing, year, ctx.edition_prefix
        )
        try:
            save_listing_summary(workspace, summary)
        except OSError as e:
            log.warning(f"  Failed to save listing summary: {e}")

    with timer(f"Media publish for {entity_id}", log):
        media_ids = publish_entity_media(
            entity_id, entity.title, workspace, backend=ctx.backend, store=ctx.store, log=log
        )

    record = upsert_entity(entity, year, media_ids, backend=ctx.backend, store=ctx.store, log=log)

    document, template_record = generate_template(
        FilmData.from_entity(entity),
        media_ids,
        year,
        ctx.style,
        backend=ctx.backend,
        store=ctx.store,
        entity_id=entity_id,
    )
    save_template_document(
        workspace,
        record.post_id,
        document,
        template_record,
        media_ids,
        backend=ctx.backend,
        http=ctx.http,
        log=log,
    )
    return record


def load_entities(
    config: dict,
    sheets: SheetsClient,
    year: str | None,
    limit: int | None,
    log: logging.Logger,
) -> list[Entity]:
    google = config["google"]
    grid = sheets.read_range(google["sheet_id"], google["sheet_range"])
    entities = rows_to_entities(grid, log)
    entities = filter_by_edition(entities, year, config["edition"]["prefix"])
    if limit is not None:
        entities = entities[:limit]
    return entities


def run_sync(
    config: dict,
    *,
    year: str | None = None,
    limit: int | None = None,
    log: Optional[logging.Logger] = None,
    sheets: Optional[SheetsClient] = None,
    drive: Optional[DriveClient] = None,
    backend: Optional[WordPressClient] = None,
    store: Optional[MetadataStore] = None,
) -> PipelineResult:
    """Process every film of the edition, one after another.

    A film that fails is counted and logged; the run moves on to the next.
    Clients not passed in are built from config and closed at the end.
    """
    log = log or logger
    owns_store = store is None
    owns_backend = backend is None
    store = store or MetadataStore(get_database_path(config))
    backend = backend or WordPressClient.from_config(config, logger=log)
    result = PipelineResult()
    http = requests.Session()

    try:
        credentials = get_credentials_path(config)
        sheets = sheets or SheetsClient.from_credentials(credentials)
        drive = drive or DriveClient.from_credentials(credentials, logger=log)

        with timer("Sheet read", log):
            entities = load_entities(config, sheets, year, limit, log)
        log.info(f"Found {len(entities)} films" + (f" for {year}" if year else ""))

        images = config["images"]
        ctx = SyncContext(
            drive=drive,
            backend=backend,
            store=store,
            optimizer=ImageOptimizer(images["max_width"], images["max_height"], images["quality"]),
            films_dir=get_films_dir(config),
            style=load_template_style(year, resolve_path(config["templates"]["dir"]), log),
            listing=load_listing(year, resolve_path(config["listing"]["dir"]), log),
            edition_prefix=config["edition"]["prefix"],
            http=http,
        )

        run_id = store.record_run_start(year=year, items_fetched=len(entities))
        for i, entity in enumerate(entities, start=1):
            log.info(f"[{i}/{len(entities)}] {entity.title}")
            result.processed += 1
            try:
                record = process_single_entity(entity, year, ctx, log)
            except (FilmSyncError, OSError) as e:
                result.failed += 1
                result.failures.append((entity.title, str(e)))
                log.error(f"✗ {entity.title}: {e}")
                store.record_entity_result(run_id, entity.entity_id, entity.title, False, error=str(e))
                continue

            result.succeeded += 1
            log.info(f"✓ {entity.title} (post {record.post_id})")
            store.record_entity_result(run_id, entity.entity_id, entity.title, True, post_id=record.post_id)

        store.record_run_complete(run_id, result.processed, result.failed)
    finally:
        http.close()
        if owns_backend:
            backend.close()
        if owns_store:
            store.close()

    log.info(f"Processed: {result.processed}, Succeeded: {result.succeeded}, Failed: {result.failed}")
    return result
