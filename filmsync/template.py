"""Assemble the Divi page document for a film and write it to its workspace."""
import base64
import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import requests

from filmsync.database import DRIVE_FILES, MEDIA_LEDGER, MetadataStore
from filmsync.divi import (
    BUILDER_VERSION,
    COLOR_BODY,
    COLOR_DARK,
    COLOR_PRIMARY,
    COLOR_SECONDARY,
    ContentNotesComponent,
    Credits,
    CreditsComponent,
    DirectorBlock,
    DirectorComponent,
    FooterComponent,
    GalleryComponent,
    HeaderComponent,
    MainContentComponent,
    MenuComponent,
    TemplateComposer,
    TemplateStyle,
)
from filmsync.exceptions import BackendError, MetadataNotFoundError, MetadataStoreError
from filmsync.models import FilmData, PublishedMedium, RemoteFile
from filmsync.utils import filename_from_url, parse_directors, parse_duration, strip_web_suffix
from filmsync.wordpress import Media, WordPressClient

logger = logging.getLogger(__name__)

DOCUMENT_FILENAME = "divi_template.json"
RECORD_FILENAME = "template_data.json"

BACKGROUND_KEYWORDS = ("background", "header", "fondo", "bg")
STILLS_FOLDER = "stills"

ROW_PRESETS = {
    "et_pb_row": {
        "presets": {
            "_initial": {
                "name": "Fila Preset 1",
                "version": BUILDER_VERSION,
                "settings": {
                    "use_custom_gutter": "off",
                    "gutter_width": "1",
                    "width": "90%",
                    "module_alignment": "center",
                },
            },
        },
        "default": "_initial",
    },
}

GLOBAL_COLORS = [
    ["gcid-primary-color", {"color": COLOR_DARK, "active": "yes"}],
    ["gcid-secondary-color", {"color": COLOR_PRIMARY, "active": "yes"}],
    ["gcid-heading-color", {"color": COLOR_SECONDARY, "active": "yes"}],
    ["gcid-body-color", {"color": COLOR_BODY, "active": "yes"}],
]


@dataclass
class TemplateRecord:
    """Structured data the page was rendered from."""

    title: str = ""
    country: str = ""
    year: str = ""
    duration: str = ""
    background_image: str = ""
    directors: list[DirectorBlock] = field(default_factory=list)
    synopsis: str = ""
    content_notes: str = ""
    credits: Credits = field(default_factory=Credits)
    image_gallery_ids: list[int] = field(default_factory=list)
    gallery_media_ids: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


def load_template_style(year: str | None, templates_dir: Path, log: Optional[logging.Logger] = None) -> TemplateStyle:
    """Read templates/<year>.json; fall back to an empty style."""
    log = log or logger
    if not year:
        return TemplateStyle()

    path = templates_dir / f"{year}.json"
    if not path.exists():
        log.warning(f"No template style for {year} at {path}, using defaults")
        return TemplateStyle()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning(f"Failed to read template style {path}: {e}")
        return TemplateStyle()
    return TemplateStyle.from_dict(data if isinstance(data, dict) else {})


def _fetch_media(media_ids: list[int], backend: WordPressClient) -> list[Media]:
    media = []
    for media_id in media_ids:
        try:
            media.append(backend.get_media(media_id))
        except BackendError as e:
            logger.debug(f"Skipping media {media_id}: {e}")
    return media


def _media_filename(media: Media) -> str:
    """'.../ana-perez_web.jpg' -> 'ana-perez'"""
    return filename_from_url(media.source_url).removesuffix("_web")


def find_director_image(name: str, media: list[Media]) -> str:
    """Source URL of the image that best matches a director's name."""
    clean = name.strip().lower()
    if not clean:
        return ""

    for item in media:
        if clean in item.title.lower():
            return item.source_url
        if clean in _media_filename(item):
            return item.source_url
        if clean in item.alt_text.lower():
            return item.source_url

    words = [w for w in clean.split() if len(w) > 2]
    if len(clean.split()) > 1 and words:
        for item in media:
            title = item.title.lower()
            filename = _media_filename(item)
            if any(w in title or w in filename for w in words):
                return item.source_url

    return ""


def select_background_image_url(media: list[Media]) -> str:
    if not media:
        return ""
    for item in media:
        texts = (item.title.lower(), _media_filename(item), item.alt_text.lower())
        if any(kw in text for kw in BACKGROUND_KEYWORDS for text in texts):
            return item.source_url
    return media[0].source_url


def _name_key(filename: str) -> str:
    name = strip_web_suffix(filename.lower())
    if "." in name:
        name = name[: name.rindex(".")]
    return name


def filter_stills_images(
    media_ids: list[int],
    ledger: list[PublishedMedium],
    snapshot: list[RemoteFile],
) -> list[int]:
    """Media ids whose original file lives in the Stills folder."""
    paths = {entry.id: entry.file_path for entry in ledger}
    folders = {}
    for file in snapshot:
        folders[file.name.lower()] = file.folder_name.lower()
        folders[_name_key(file.name)] = file.folder_name.lower()

    stills = []
    for media_id in media_ids:
        path = paths.get(media_id)
        if not path:
            continue
        if folders.get(_name_key(Path(path).name)) == STILLS_FOLDER:
            stills.append(media_id)
    return stills


def _load_ledger(store: MetadataStore, entity_id: str) -> list[PublishedMedium]:
    try:
        return [PublishedMedium.from_dict(d) for d in store.get(entity_id, MEDIA_LEDGER) or []]
    except (MetadataNotFoundError, MetadataStoreError):
        return []


def _load_snapshot(store: MetadataStore, entity_id: str) -> list[RemoteFile]:
    try:
        return [RemoteFile.from_dict(d) for d in store.get(entity_id, DRIVE_FILES) or []]
    except (MetadataNotFoundError, MetadataStoreError):
        return []


def build_template_record(
    film: FilmData,
    media_ids: list[int],
    *,
    backend: WordPressClient,
    store: MetadataStore,
    entity_id: str,
) -> TemplateRecord:
    media = _fetch_media(media_ids, backend)

    directors = []
    if film.direccion:
        names = parse_directors(film.direccion) if film.has_multiple_directors else [film.direccion]
        directors = [
            DirectorBlock(name=name, bio=film.bio_realizadorxs, image_url=find_director_image(name, media))
            for name in names
        ]

    stills = filter_stills_images(media_ids, _load_ledger(store, entity_id), _load_snapshot(store, entity_id))

    return TemplateRecord(
        title=film.titulo_original,
        country=film.pais,
        year=film.ano,
        duration=parse_duration(film.duracion) if film.duracion else "",
        background_image=select_background_image_url(media),
        directors=directors,
        synopsis=film.sinopsis_extendida,
        content_notes=film.notas_contenido,
        credits=Credits(
            production=film.produccion,
            script=film.guion,
            photography=film.camara_foto,
            art_design=film.arte_diseno,
            sound_music=film.sonido_musica,
            editing=film.edicion_credits,
            cast=film.interpretes,
            other_credits=film.otros_creditos,
        ),
        image_gallery_ids=stills,
        gallery_media_ids=",".join(str(i) for i in stills),
    )


def create_standard_template(record: TemplateRecord, year: str | None, style: TemplateStyle) -> TemplateComposer:
    """Header, menu, main content and footer, in that order."""
    subhead = f"{record.country} · {record.year} · {record.duration}"
    button_text = f"convocatoria {year}" if year else "convocatoria"

    return (
        TemplateComposer()
        .add_component(HeaderComponent(
            title=record.title,
            subhead=subhead,
            background_image=record.background_image,
            style=style.header,
        ))
        .add_component(MenuComponent(style=style.menu))
        .add_component(MainContentComponent(
            credits=CreditsComponent(directors=record.directors, credits=record.credits),
            notes=ContentNotesComponent(notes=record.content_notes, style=style.ndc),
            synopsis=record.synopsis,
            directors=DirectorComponent(directors=record.directors, style=style.texto),
            gallery=GalleryComponent(media_ids=record.gallery_media_ids),
            section_style=style.contenido,
            text_style=style.texto,
        ))
        .add_component(FooterComponent(button_text=button_text, style=style.footer))
    )


def generate_template(
    film: FilmData,
    media_ids: list[int],
    year: str | None,
    style: TemplateStyle,
    *,
    backend: WordPressClient,
    store: MetadataStore,
    entity_id: str,
) -> tuple[str, TemplateRecord]:
    """Render the page. Returns (shortcode document, record)."""
    record = build_template_record(film, media_ids, backend=backend, store=store, entity_id=entity_id)
    document = create_standard_template(record, year, style).compose()
    return document, record


def encode_image(url: str, http: requests.Session, timeout_s: int = 60) -> str:
    """Base64 of the image at url; empty string on any failure."""
    if not url:
        return ""
    try:
        resp = http.get(url, timeout=timeout_s)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"Failed to fetch image {url}: {e}")
        return ""
    return base64.b64encode(resp.content).decode("ascii")


def build_images_section(media_ids: list[int], backend: WordPressClient, http: requests.Session) -> dict:
    images = {}
    for item in _fetch_media(media_ids, backend):
        images[item.source_url] = {
            "encoded": encode_image(item.source_url, http),
            "url": item.source_url,
            "id": item.id,
        }
    return images


def save_template_document(
    workspace: Path,
    post_id: int,
    document: str,
    record: TemplateRecord,
    media_ids: list[int],
    *,
    backend: WordPressClient,
    http: Optional[requests.Session] = None,
    log: Optional[logging.Logger] = None,
) -> Path:
    """Write divi_template.json and template_data.json.

    Raises OSError when either file cannot be written.
    """
    log = log or logger
    http = http or requests.Session()

    payload = {
        "context": "et_builder",
        "data": {str(post_id): document},
        "presets": ROW_PRESETS,
        "global_colors": GLOBAL_COLORS,
        "images": build_images_section(media_ids, backend, http),
        "thumbnails": [],
    }

    workspace.mkdir(parents=True, exist_ok=True)
    document_path = workspace / DOCUMENT_FILENAME
    document_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    (workspace / RECORD_FILENAME).write_text(
        json.dumps(record.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8"
    )
    log.info(f"  ✓ Saved page template to {document_path}")
    return document_path
