"""Catalog search endpoints (proxy for the RAWG API)."""
import math

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from mygames.api.auth import get_current_user
from mygames.api.deps import get_catalog
from mygames.config import get_settings
from mygames.gateways.auth import UserIdentity
from mygames.gateways.catalog import CatalogEntry, CoverResult, RawgCatalog

settings = get_settings()

router = APIRouter(prefix="/catalog", tags=["catalog"])


class CatalogSearchResponse(BaseModel):
    results: list[CatalogEntry]
    total: int
    page: int
    total_pages: int


@router.get("/search", response_model=CatalogSearchResponse)
async def search_catalog(
    q: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    details: bool = True,
    catalog: RawgCatalog = Depends(get_catalog),
    _: UserIdentity = Depends(get_current_user),
):
    """Search games to add. ``details=false`` skips the per-result detail lookups."""
    result = await catalog.search_catalog(q, page=page, enrich=details)
    return CatalogSearchResponse(
        results=result.results,
        total=result.total,
        page=page,
        total_pages=math.ceil(result.total / settings.catalog_page_size),
    )


@router.get("/covers", response_model=list[CoverResult])
async def search_covers(
    q: str = Query(..., min_length=1),
    catalog: RawgCatalog = Depends(get_catalog),
    _: UserIdentity = Depends(get_current_user),
):
    """Cover art candidates for the change-cover picker."""
    return await catalog.search_covers(q)


@router.get("/{catalog_id}", response_model=CatalogEntry)
async def get_catalog_game(
    catalog_id: int,
    catalog: RawgCatalog = Depends(get_catalog),
    _: UserIdentity = Depends(get_current_user),
):
    """Description and screenshots of one catalog game."""
    entry = await catalog.get_details(catalog_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Catalog game not found")
    return entry
