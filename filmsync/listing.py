"""One-line programme listing for a film, saved as metadata.json."""
import json
import logging
import re
from datetime import date
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

LISTING_FILENAME = "metadata.json"

SPANISH_WEEKDAYS = ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo")
SPANISH_MONTHS = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)


def load_listing(year: str | None, listing_dir: Path, log: Optional[logging.Logger] = None) -> Optional[dict]:
    """Cities and screening dates for an edition, from <year>.json."""
    log = log or logger
    if not year:
        return None
    path = listing_dir / f"{year}.json"
    if not path.exists():
        log.debug(f"No listing file at {path}")
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning(f"Failed to read listing file {path}: {e}")
        return None
    return data if isinstance(data, dict) else None


def format_spanish_date(iso_date: str) -> str:
    """'2025-03-07' -> 'viernes 07 de marzo'; unparseable input -> ''."""
    try:
        day = date.fromisoformat(iso_date.strip())
    except ValueError:
        return ""
    return f"{SPANISH_WEEKDAYS[day.weekday()]} {day.day:02d} de {SPANISH_MONTHS[day.month - 1]}"


def build_listing_summary(
    title: str,
    section: str,
    direction: str,
    listing: Optional[dict],
    year: str,
    prefix: str = "Excéntrico",
) -> str:
    directors = re.sub(r"\by\b", "&", direction).upper()
    summary = f"{section.upper()} {year} - {title} - {directors} - Programación {prefix} {year}"
    if not listing:
        return summary

    cities = listing.get("cities") or []
    if cities:
        summary += f" {cities[0]}"

    dates = listing.get("dates") or []
    if dates and dates[0]:
        date_from = format_spanish_date(dates[0][0])
        if date_from:
            summary += f" del {date_from}"
            if len(dates[0]) > 1:
                date_to = format_spanish_date(dates[0][1])
                if date_to:
                    summary += f" al {date_to}"
    return summary


def save_listing_summary(workspace: Path, summary: str) -> Path:
    path = workspace / LISTING_FILENAME
    path.write_text(summary, encoding="utf-8")
    return path
