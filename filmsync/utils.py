"""Utility functions for filmsync."""
import re
import unicodedata
from pathlib import Path

WEB_SUFFIX = "_web.jpg"
SLUG_MAX_LENGTH = 50

IMAGE_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/tiff",
}

ALLOWED_FOLDERS = {"background", "featured image", "stills", "dir"}

DRIVE_ID_PATTERNS = [
    r"/drive/u/\d+/folders/([a-zA-Z0-9_-]+)",
    r"/drive/folders/([a-zA-Z0-9_-]+)",
    r"/file/d/([a-zA-Z0-9_-]+)",
    r"id=([a-zA-Z0-9_-]+)",
    r"/d/([a-zA-Z0-9_-]+)",
    r"/folders/([a-zA-Z0-9_-]+)",
]

_DIRECTOR_SEPARATORS = re.compile(r"\s*,\s*|\s+\+\s+|\s+y\s+|\s*&\s*")


def sanitize_entity_id(name: str, fallback: str = "unnamed_film") -> str:
    """Turn a film title into a filesystem-safe identifier."""
    sanitized = re.sub(r'[<>:"/\\|?*]', "_", name)
    sanitized = sanitized.strip().strip(".")
    sanitized = re.sub(r"\s+", " ", sanitized)
    return sanitized or fallback


def fold_accents(text: str) -> str:
    """Strip combining marks: 'Étude' -> 'Etude'."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def create_slug(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Build a WordPress slug: ASCII, lowercase, single hyphens, bounded length."""
    slug = fold_accents(text).lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = slug.strip("-")
    if len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug


def extract_folder_id(url: str) -> str:
    """Extract a Google Drive file or folder ID from a sharing URL.

    Returns an empty string when no known URL shape matches.
    """
    for pattern in DRIVE_ID_PATTERNS:
        match = re.search(pattern, url)
        if match:
            return match.group(1)
    return ""


def is_image_mime(mime_type: str) -> bool:
    return mime_type.strip().lower() in IMAGE_MIME_TYPES


def is_allowed_folder(folder_name: str) -> bool:
    """True for the asset folders that are synced (case-insensitive)."""
    if not folder_name:
        return False
    return folder_name.strip().lower() in ALLOWED_FOLDERS


def optimized_image_path(original: Path) -> Path:
    """Path of the web-ready variant: 'still 1.png' -> 'still 1_web.jpg'."""
    return original.with_name(original.stem + WEB_SUFFIX)


def is_web_variant(filename: str) -> bool:
    return filename.lower().endswith(WEB_SUFFIX)


def strip_web_suffix(filename: str) -> str:
    if is_web_variant(filename):
        return filename[: -len(WEB_SUFFIX)]
    return filename


def filename_from_url(url: str) -> str:
    """Last URL path segment without its extension, lowercased."""
    if not url:
        return ""
    name = url.rstrip("/").split("/")[-1]
    if "." in name:
        name = name[: name.rindex(".")]
    return name.lower()


def parse_category_string(categories: str) -> list[str]:
    """Split a comma-separated section cell into category names."""
    if not categories:
        return []
    return [part.strip() for part in categories.split(",") if part.strip()]


def parse_directors(directors: str) -> list[str]:
    """Split a director credit on ',', ' + ', ' y ' and '&'."""
    names = _DIRECTOR_SEPARATORS.split(directors)
    return [name.strip() for name in names if name.strip()]


def parse_duration(duration: str) -> str:
    """Format a sheet duration for display.

    '1:32:10' -> '92´10', '12:30' -> '12´30', anything else -> '0´0'.
    """
    parts = duration.split(":")
    if len(parts) == 3:
        hours, minutes, seconds = (p.strip() for p in parts)
        try:
            total_minutes = int(hours) * 60 + int(minutes)
        except ValueError:
            return "0´0"
        return f"{total_minutes}´{seconds}"
    if len(parts) == 2:
        return f"{parts[0].strip()}´{parts[1].strip()}"
    return "0´0"
