"""CSV export of the filtered collection and CSV import with catalog backfill."""
import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import httpx

from mygames.constants import (
    DEFAULT_FORMAT,
    DEFAULT_PLATFORM,
    DEFAULT_STATUS,
    DIGITAL_FORMAT,
    PHYSICAL_FORMAT,
    PLATFORMS,
    STATUSES,
)
from mygames.core.records import GameRecord, check_rating, check_title
from mygames.exceptions import ValidationError
from mygames.gateways.catalog import RawgCatalog
from mygames.store import CollectionStore

logger = logging.getLogger(__name__)

EXPORT_HEADER = ["ID", "Título", "Plataforma", "Formato", "Estado", "Nota", "Es DLC"]

# Accepted header spellings per field, compared case-insensitively
IMPORT_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "nombre", "título", "titulo", "name"),
    "platform": ("platform", "plataforma"),
    "status": ("status", "estado"),
    "format": ("format", "formato"),
    "user_rating": ("user_rating", "rating", "nota"),
}

FORMAT_ALIASES = {
    "digital": DIGITAL_FORMAT,
    "physical": PHYSICAL_FORMAT,
    "físico": PHYSICAL_FORMAT,
    "fisico": PHYSICAL_FORMAT,
}

_PLATFORMS_BY_KEY = {p.lower(): p for p in PLATFORMS}
_STATUSES_BY_KEY = {s.lower(): s for s in STATUSES}


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _format_rating(value: Optional[float]) -> str:
    return f"{value:g}" if value else ""


def export_csv(records: Iterable[GameRecord]) -> str:
    """One line per record; the title is always quoted."""
    lines = [",".join(EXPORT_HEADER)]
    for r in records:
        lines.append(",".join([
            str(r.id),
            _quote(r.title),
            r.platform,
            r.format,
            r.status,
            _format_rating(r.user_rating),
            "Sí" if r.parent_id is not None else "No",
        ]))
    return "\n".join(lines)


@dataclass
class RowError:
    line: int
    message: str


@dataclass
class ParsedRow:
    line: int
    fields: dict[str, Any]


@dataclass
class ImportReport:
    imported: list[GameRecord] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)


def resolve_columns(fieldnames: Iterable[str]) -> dict[str, str]:
    """Map canonical field names to the headers present in the file."""
    by_key = {name.strip().lower(): name for name in fieldnames if name}
    columns = {}
    for canonical, aliases in IMPORT_ALIASES.items():
        for alias in aliases:
            if alias in by_key:
                columns[canonical] = by_key[alias]
                break
    if "title" not in columns:
        accepted = ", ".join(IMPORT_ALIASES["title"])
        raise ValidationError(f"CSV has no title column (accepted headers: {accepted})")
    return columns


def _cell(row: dict[str, Any], columns: dict[str, str], name: str) -> str:
    header = columns.get(name)
    value = row.get(header) if header else None
    return (value or "").strip()


def _parse_row(row: dict[str, Any], columns: dict[str, str]) -> dict[str, Any]:
    title = _cell(row, columns, "title")
    if not title:
        raise ValidationError("Missing title")
    title = check_title(title)

    platform = _cell(row, columns, "platform") or DEFAULT_PLATFORM
    if platform.lower() not in _PLATFORMS_BY_KEY:
        raise ValidationError(f"Unknown platform '{platform}'")

    status = _cell(row, columns, "status") or DEFAULT_STATUS
    if status.lower() not in _STATUSES_BY_KEY:
        raise ValidationError(f"Unknown status '{status}'")

    format = _cell(row, columns, "format") or DEFAULT_FORMAT
    if format.lower() not in FORMAT_ALIASES:
        raise ValidationError(f"Unknown format '{format}'")

    return {
        "title": title,
        "platform": _PLATFORMS_BY_KEY[platform.lower()],
        "status": _STATUSES_BY_KEY[status.lower()],
        "format": FORMAT_ALIASES[format.lower()],
        "user_rating": check_rating(_cell(row, columns, "user_rating")),
    }


def parse_csv(text: str) -> tuple[list[ParsedRow], list[RowError]]:
    """Parse an import file into valid rows and per-row errors."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if not reader.fieldnames:
        raise ValidationError("CSV file is empty")
    columns = resolve_columns(reader.fieldnames)

    rows, errors = [], []
    for row in reader:
        line = reader.line_num
        if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
            continue
        try:
            rows.append(ParsedRow(line=line, fields=_parse_row(row, columns)))
        except ValidationError as e:
            errors.append(RowError(line=line, message=e.message))
    return rows, errors


async def lookup_metadata(catalog: RawgCatalog, title: str) -> Optional[dict[str, Any]]:
    """Cover, critic score and description of the best catalog match, or None."""
    try:
        page = await catalog.search_catalog(title)
    except httpx.HTTPError as e:
        logger.warning(f"Catalog lookup failed for '{title}': {e}")
        return None
    if not page.results:
        return None

    best = page.results[0]
    return {
        "image_url": best.image_url,
        "critic_score": best.critic_score,
        "description": best.description or None,
        "screenshots": best.screenshots or None,
    }


async def import_csv(
    text: str,
    store: CollectionStore,
    catalog: RawgCatalog,
    placeholder_image: str,
) -> ImportReport:
    """Import every valid row, backfilling metadata from the catalog one row at a time."""
    parsed, errors = parse_csv(text)
    report = ImportReport(errors=errors)

    rows = []
    for row in parsed:
        fields = {
            **row.fields,
            "image_url": placeholder_image,
            "critic_score": 0,
        }
        metadata = await lookup_metadata(catalog, row.fields["title"])
        if metadata:
            fields.update({k: v for k, v in metadata.items() if v is not None})
        else:
            report.not_found.append(row.fields["title"])
        rows.append(fields)

    if rows:
        report.imported = await store.add_games(rows)
    logger.info(
        f"CSV import for user {store.user_id}: {len(report.imported)} imported, "
        f"{len(report.errors)} rejected, {len(report.not_found)} without catalog match"
    )
    return report
