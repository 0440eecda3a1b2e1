"""Data models for the film sync pipeline."""
from dataclasses import dataclass, field

from filmsync.utils import sanitize_entity_id

TITLE_COLUMN = "TÍTULO ORIGINAL"
FALLBACK_TITLE_COLUMN = "Name"
SECTION_COLUMN = "SECCIÓN"
DIRECTION_COLUMN = "DIRECCIÓN"
EDITION_COLUMN = "EDICIÓN"
LINKS_COLUMN = "ENLACES"

UNNAMED_TITLE = "unnamed_film"

# FilmData attribute -> sheet header
FILM_COLUMNS = {
    "titulo_original": TITLE_COLUMN,
    "direccion": DIRECTION_COLUMN,
    "pais": "PAIS",
    "ano": "AÑO",
    "duracion": "DURAC.",
    "edicion": EDITION_COLUMN,
    "seccion": SECTION_COLUMN,
    "tipo": "TIPO",
    "social_etiquetas": "SOCIAL/ETIQUETAS",
    "idiomas": "Idioma(s) / Language(s)",
    "relacion_aspect_ratio": "Relación / Aspect Ratio (4:3, 16:9 u otro)",
    "sinopsis_extendida": "Sinopsis extendida (máximo 70 palabras)",
    "extended_synopsis": "Extended synopsis (english)",
    "sinopsis_compacta": "Sinopsis compacta  (máximo 10 palabras)",
    "short_synopsis": "Short Synopsis (log line - Uso Pink Label)",
    "notas_contenido": "Notas de contenido / Content notes (*)",
    "nota_intencion": "Nota de intención",
    "produccion": "Producción / Producer(s)",
    "guion": "Guión",
    "camara_foto": "Cámara - Foto / Camera - Photography",
    "arte_diseno": "Arte - Diseño / Art/Design",
    "sonido_musica": "Sonido - Música / Sound - Music",
    "edicion_credits": "Edición / Editor(s)",
    "interpretes": "Intérpretes (especificar pronombres para subtítulos)/ Cast (please specify pronouns for subtitles)",
    "otros_creditos": "Otros créditos / Other credits",
    "festivales_premios": "Festivales y premios / Festivals & Awards",
    "bio_realizadorxs": "Bio Realizadorxs / Filmaker's Bio (min 150 - max 1500 caracteres)",
    "correo_electronico": "Correo electrónico / Email",
    "telefono": "Teléfono / Phone number",
    "enlaces": LINKS_COLUMN,
    "web_excentrico": "Web Excentrico",
    "imagenes_baja": "imágenes en baja",
    "obs_subtitulos": "Obs. Subtitulos",
    "published_status": "Published Status",
    "categoria": "Categoría",
    "multi_dir": "Multi Dir",
}


@dataclass(frozen=True)
class RemoteFile:
    """A leaf file found while scanning a Drive folder tree."""

    id: str
    name: str
    mime_type: str
    size: int = 0
    created_time: str = ""
    modified_time: str = ""
    folder_path: str = ""  # slash-joined lineage from the scan root
    folder_name: str = ""  # last segment of folder_path

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "mimeType": self.mime_type,
            "size": str(self.size),
            "createdTime": self.created_time,
            "modifiedTime": self.modified_time,
            "folder_path": self.folder_path,
            "folder_name": self.folder_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RemoteFile":
        try:
            size = int(data.get("size") or 0)
        except (TypeError, ValueError):
            size = 0
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            size=size,
            created_time=data.get("createdTime", ""),
            modified_time=data.get("modifiedTime", ""),
            folder_path=data.get("folder_path", ""),
            folder_name=data.get("folder_name", ""),
        )


@dataclass
class PublishedMedium:
    """Upload ledger entry for one image published to WordPress."""

    id: int
    title: str
    source_url: str
    alt_text: str
    file_path: str
    post_id: int = 0  # 0 until the owning post exists

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "source_url": self.source_url,
            "alt_text": self.alt_text,
            "file_path": self.file_path,
            "post_id": self.post_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PublishedMedium":
        return cls(
            id=int(data.get("id") or 0),
            title=data.get("title", ""),
            source_url=data.get("source_url", ""),
            alt_text=data.get("alt_text", ""),
            file_path=data.get("file_path", ""),
            post_id=int(data.get("post_id") or 0),
        )


@dataclass
class ContentRecord:
    """Persisted identity of a film's WordPress post."""

    post_id: int
    title: str = ""
    slug: str = ""
    status: str = ""
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "post_id": self.post_id,
            "title": self.title,
            "slug": self.slug,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ContentRecord":
        return cls(
            post_id=int(data["post_id"]),
            title=data.get("title", ""),
            slug=data.get("slug", ""),
            status=data.get("status", ""),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


@dataclass
class Entity:
    """One sheet row: the unit of work for a sync pass."""

    fields: dict[str, str]
    row_number: int = 0

    @property
    def title(self) -> str:
        return (
            self.fields.get(TITLE_COLUMN)
            or self.fields.get(FALLBACK_TITLE_COLUMN)
            or UNNAMED_TITLE
        )

    @property
    def entity_id(self) -> str:
        return sanitize_entity_id(self.title)

    @property
    def section(self) -> str:
        return self.fields.get(SECTION_COLUMN, "")

    @property
    def direction(self) -> str:
        return self.fields.get(DIRECTION_COLUMN, "")

    @property
    def drive_link(self) -> str:
        return self.fields.get(LINKS_COLUMN, "")

    def get(self, column: str) -> str:
        return self.fields.get(column, "")


@dataclass
class FilmData:
    """Typed view of the sheet columns used by the page template."""

    titulo_original: str = ""
    direccion: str = ""
    pais: str = ""
    ano: str = ""
    duracion: str = ""
    edicion: str = ""
    seccion: str = ""
    tipo: str = ""
    social_etiquetas: str = ""
    idiomas: str = ""
    relacion_aspect_ratio: str = ""
    sinopsis_extendida: str = ""
    extended_synopsis: str = ""
    sinopsis_compacta: str = ""
    short_synopsis: str = ""
    notas_contenido: str = ""
    nota_intencion: str = ""
    produccion: str = ""
    guion: str = ""
    camara_foto: str = ""
    arte_diseno: str = ""
    sonido_musica: str = ""
    edicion_credits: str = ""
    interpretes: str = ""
    otros_creditos: str = ""
    festivales_premios: str = ""
    bio_realizadorxs: str = ""
    correo_electronico: str = ""
    telefono: str = ""
    enlaces: str = ""
    web_excentrico: str = ""
    imagenes_baja: str = ""
    obs_subtitulos: str = ""
    published_status: str = ""
    categoria: str = ""
    multi_dir: str = ""
    additional_fields: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_entity(cls, entity: Entity) -> "FilmData":
        values = {attr: entity.get(header) for attr, header in FILM_COLUMNS.items()}
        known = set(FILM_COLUMNS.values())
        extra = {
            key: value
            for key, value in entity.fields.items()
            if key not in known and value
        }
        return cls(**values, additional_fields=extra)

    @property
    def has_multiple_directors(self) -> bool:
        return self.multi_dir.strip().upper() == "SI"
