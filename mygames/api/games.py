"""Collection endpoints: browse, add, edit, delete, export and import games."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import BaseModel

from mygames.api.deps import get_catalog, get_filters, get_games_gateway, get_store
from mygames.config import get_settings
from mygames.core.records import GameRecord
from mygames.core.view_model import FilterState, SortKey, build_view
from mygames.gateways.catalog import RawgCatalog
from mygames.gateways.games import GamesGateway
from mygames.importer import RowError, export_csv, import_csv
from mygames.store import CollectionStore

settings = get_settings()

router = APIRouter(prefix="/games", tags=["games"])


class ViewEntryResponse(BaseModel):
    """A grid card / table row. DLCs are nested only when no filter is active."""
    game: GameRecord
    is_dlc: bool
    dlcs: list[GameRecord]


class CollectionPageResponse(BaseModel):
    items: list[ViewEntryResponse]
    page: int
    page_size: int
    total_pages: int
    total_items: int
    actively_filtering: bool


class NewGameRequest(BaseModel):
    """A game picked from the catalog search."""
    title: str
    platform: str
    format: str
    status: str
    image_url: Optional[str] = None
    critic_score: int = 0
    description: Optional[str] = None
    screenshots: Optional[list[str]] = None
    parent_id: Optional[int] = None


class GameUpdateRequest(BaseModel):
    """Fields from the edit form; only the ones sent are changed."""
    title: Optional[str] = None
    platform: Optional[str] = None
    format: Optional[str] = None
    status: Optional[str] = None
    image_url: Optional[str] = None
    critic_score: Optional[int] = None
    user_rating: Optional[float] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    parent_id: Optional[int] = None


class NotesRequest(BaseModel):
    notes: Optional[str] = None


class ImportResponse(BaseModel):
    imported: int
    games: list[GameRecord]
    errors: list[dict]
    not_found: list[str]


def _row_error(error: RowError) -> dict:
    return {"line": error.line, "message": error.message}


@router.get("", response_model=CollectionPageResponse)
async def list_games(
    filters: FilterState = Depends(get_filters),
    sort: SortKey = SortKey.CREATED_DESC,
    page: int = Query(1, ge=1),
    store: CollectionStore = Depends(get_store),
):
    """One page of the collection for the grid and table views."""
    view = build_view(store.records, filters, sort, page, settings.page_size)
    return CollectionPageResponse(
        items=[
            ViewEntryResponse(game=entry.record, is_dlc=entry.is_dlc, dlcs=entry.dlcs)
            for entry in view.items
        ],
        page=view.page,
        page_size=view.page_size,
        total_pages=view.total_pages,
        total_items=view.total_items,
        actively_filtering=view.actively_filtering,
    )


@router.get("/export")
async def export_games(
    filters: FilterState = Depends(get_filters),
    sort: SortKey = SortKey.CREATED_DESC,
    store: CollectionStore = Depends(get_store),
):
    """Download the filtered collection as CSV."""
    view = build_view(store.records, filters, sort, 1, settings.page_size)
    return Response(
        content=export_csv(view.filtered),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=games.csv"},
    )


@router.post("/import", response_model=ImportResponse)
async def import_games(
    request: Request,
    store: CollectionStore = Depends(get_store),
    catalog: RawgCatalog = Depends(get_catalog),
):
    """Import a CSV file sent as the request body."""
    text = (await request.body()).decode("utf-8-sig")
    report = await import_csv(text, store, catalog, settings.placeholder_image_url)
    return ImportResponse(
        imported=len(report.imported),
        games=report.imported,
        errors=[_row_error(e) for e in report.errors],
        not_found=report.not_found,
    )


@router.get("/parents", response_model=list[GameRecord])
async def list_parent_candidates(
    q: str = "",
    gateway: GamesGateway = Depends(get_games_gateway),
):
    """Base games a new DLC can be attached to."""
    return await gateway.list_base_games(q)


@router.get("/{game_id}", response_model=GameRecord)
async def get_game(
    game_id: int,
    gateway: GamesGateway = Depends(get_games_gateway),
):
    """Detail page data."""
    return await gateway.get_game(game_id)


@router.post("", response_model=GameRecord, status_code=201)
async def add_game(
    request: NewGameRequest,
    store: CollectionStore = Depends(get_store),
):
    return await store.add_game(request.model_dump(exclude_none=True))


@router.patch("/{game_id}", response_model=GameRecord)
async def update_game(
    game_id: int,
    request: GameUpdateRequest,
    store: CollectionStore = Depends(get_store),
):
    return await store.update_game(game_id, request.model_dump(exclude_unset=True))


@router.put("/{game_id}/notes", response_model=GameRecord)
async def save_notes(
    game_id: int,
    request: NotesRequest,
    store: CollectionStore = Depends(get_store),
):
    return await store.save_notes(game_id, request.notes)


@router.delete("/{game_id}")
async def delete_game(
    game_id: int,
    store: CollectionStore = Depends(get_store),
):
    """Delete a game. Deleting a base game also deletes its DLCs."""
    await store.delete_game(game_id)
    return {"status": "deleted", "id": game_id}
