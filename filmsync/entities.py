"""Build films from spreadsheet rows and apply the edition filter."""
import logging
from typing import Any

from filmsync.models import EDITION_COLUMN, Entity

logger = logging.getLogger(__name__)


def rows_to_entities(grid: list[list[Any]], log: logging.Logger | None = None) -> list[Entity]:
    """Turn a header row plus data rows into Entities.

    Cells that are absent or null become empty strings. Non-string header
    cells are skipped along with their column.
    """
    log = log or logger
    if len(grid) < 2:
        log.warning("Sheet must have at least 2 rows (headers + data)")
        return []

    header = grid[0]
    columns = [(i, cell) for i, cell in enumerate(header) if isinstance(cell, str) and cell]

    entities = []
    for row_number, row in enumerate(grid[1:], start=2):
        fields = {}
        for index, name in columns:
            value = row[index] if index < len(row) else None
            fields[name] = "" if value is None else str(value)
        entities.append(Entity(fields=fields, row_number=row_number))

    log.debug(f"Read {len(entities)} rows with {len(columns)} columns")
    return entities


def filter_by_edition(entities: list[Entity], year: str | None, prefix: str) -> list[Entity]:
    """Keep films whose edition cell equals '<prefix> <year>' (case-insensitive).

    No year means no filtering.
    """
    if not year:
        return list(entities)

    expected = f"{prefix} {year}".casefold()
    return [
        entity for entity in entities
        if EDITION_COLUMN in entity.fields
        and entity.fields[EDITION_COLUMN].strip().casefold() == expected
    ]
