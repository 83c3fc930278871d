"""RAWG game catalog lookups."""
import asyncio
import logging
from typing import Any, Optional

import httpx
from cachetools import TTLCache
from pydantic import BaseModel, ValidationError

from mygames.config import Settings, get_settings
from mygames.gateways.base import BaseHttpGateway

logger = logging.getLogger(__name__)
settings = get_settings()

# Detail lookups are one request per game; keep them for an hour by default
details_cache: TTLCache = TTLCache(maxsize=512, ttl=settings.catalog_cache_ttl_seconds)


class CatalogEntry(BaseModel):
    """A catalog game reduced to what the collection stores."""
    id: int
    name: str
    image_url: Optional[str] = None
    critic_score: int = 0
    release_year: Optional[str] = None
    description: str = ""
    screenshots: list[str] = []


class CatalogPage(BaseModel):
    results: list[CatalogEntry]
    total: int


class CoverResult(BaseModel):
    name: str
    image_url: Optional[str] = None


def _screenshots(data: dict[str, Any]) -> list[str]:
    return [s["image"] for s in data.get("short_screenshots") or [] if s.get("image")]


def to_entry(data: dict[str, Any]) -> CatalogEntry:
    """Map a RAWG game payload (list item or detail) to a ``CatalogEntry``."""
    released = data.get("released")
    return CatalogEntry(
        id=data["id"],
        name=data.get("name") or "",
        image_url=data.get("background_image"),
        critic_score=data.get("metacritic") or 0,
        release_year=released[:4] if released else None,
        description=data.get("description_raw") or "",
        screenshots=_screenshots(data),
    )


def to_entries(results: list[Any]) -> list[CatalogEntry]:
    """Map a list of RAWG payloads, skipping the ones that can't be read."""
    entries = []
    for data in results:
        try:
            entries.append(to_entry(data))
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            logger.warning(f"Skipping malformed catalog entry {data!r}: {e}")
    return entries


class RawgCatalog(BaseHttpGateway):
    """Search the RAWG catalog for games to add or to backfill imports."""

    name = "rawg"
    timeout = 15.0

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(client)
        self.settings = settings or get_settings()

    @property
    def configured(self) -> bool:
        if not self.settings.rawg_api_key:
            logger.error("RAWG_API_KEY is not configured, catalog lookups are disabled")
            return False
        return True

    async def search_catalog(self, query: str, page: int = 1, enrich: bool = True) -> CatalogPage:
        """Search by title, most relevant first.

        With ``enrich`` each result gets its description and screenshots from
        a detail lookup. Pass ``enrich=False`` for plain result lists and call
        ``get_details`` once a game is picked. Results that can't be mapped
        are logged and dropped.
        """
        if not query.strip() or not self.configured:
            return CatalogPage(results=[], total=0)

        data = await self.fetch_json(
            f"{self.settings.rawg_base_url}/games",
            params={
                "key": self.settings.rawg_api_key,
                "search": query,
                "page": page,
                "page_size": self.settings.catalog_page_size,
                "search_precise": "true",
            },
        )
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            return CatalogPage(results=[], total=0)

        entries = to_entries(data["results"])
        if enrich:
            entries = await asyncio.gather(*(self._enrich(entry) for entry in entries))

        total = data.get("count")
        total = total if isinstance(total, int) else len(entries)
        logger.info(f"Catalog search '{query}' page {page}: {len(entries)} of {total}")
        return CatalogPage(results=list(entries), total=total)

    async def fetch_details(self, catalog_id: int) -> dict[str, Any] | None:
        """Raw detail payload for one catalog game, cached."""
        if catalog_id in details_cache:
            logger.debug(f"Cache hit for catalog details id={catalog_id}")
            return details_cache[catalog_id]
        if not self.configured:
            return None

        data = await self.fetch_json(
            f"{self.settings.rawg_base_url}/games/{catalog_id}",
            params={"key": self.settings.rawg_api_key},
        )
        if not isinstance(data, dict):
            return None
        details_cache[catalog_id] = data
        return data

    async def get_details(self, catalog_id: int) -> CatalogEntry | None:
        data = await self.fetch_details(catalog_id)
        if not data or "id" not in data:
            return None
        entries = to_entries([data])
        return entries[0] if entries else None

    async def _enrich(self, entry: CatalogEntry) -> CatalogEntry:
        details = await self.fetch_details(entry.id)
        if not details:
            return entry

        try:
            update: dict[str, Any] = {"description": str(details.get("description_raw") or "")}
            # The list endpoint already carries short screenshots; prefer the detail ones when present
            if details.get("short_screenshots"):
                update["screenshots"] = _screenshots(details)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring malformed details for catalog id={entry.id}: {e}")
            return entry
        return entry.model_copy(update=update)

    async def search_covers(self, query: str) -> list[CoverResult]:
        """Cover art candidates for a title. No detail lookups."""
        if not query.strip() or not self.configured:
            return []

        data = await self.fetch_json(
            f"{self.settings.rawg_base_url}/games",
            params={
                "key": self.settings.rawg_api_key,
                "search": query,
                "page_size": self.settings.cover_page_size,
                "search_precise": "true",
            },
        )
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            return []

        return [
            CoverResult(name=game.get("name") or "", image_url=game.get("background_image"))
            for game in data["results"][: self.settings.cover_page_size]
            if isinstance(game, dict)
        ]
