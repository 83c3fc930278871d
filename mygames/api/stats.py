"""Collection statistics endpoint."""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from mygames.api.deps import get_filters, get_store
from mygames.core.stats import compute_stats
from mygames.core.view_model import FilterState, filter_records
from mygames.store import CollectionStore

router = APIRouter(prefix="/stats", tags=["stats"])


class PlatformCount(BaseModel):
    platform: str
    count: int


class StatsResponse(BaseModel):
    total: int
    completed: int
    completion_pct: int
    backlog: int
    avg_rating: Optional[float]
    physical: int
    digital: int
    by_status: dict[str, int]
    top_platforms: list[PlatformCount]
    rating_distribution: list[int]
    finished_by_year: dict[int, int]
    finished_by_month: list[int]


@router.get("", response_model=StatsResponse)
async def get_stats(
    filters: FilterState = Depends(get_filters),
    store: CollectionStore = Depends(get_store),
):
    """Totals and chart data for the games matching the current filters."""
    stats = compute_stats(filter_records(store.records, filters))
    return StatsResponse(
        total=stats.total,
        completed=stats.completed,
        completion_pct=stats.completion_pct,
        backlog=stats.backlog,
        avg_rating=stats.avg_rating,
        physical=stats.physical,
        digital=stats.digital,
        by_status=stats.by_status,
        top_platforms=[PlatformCount(platform=p, count=c) for p, c in stats.top_platforms],
        rating_distribution=stats.rating_distribution,
        finished_by_year=stats.finished_by_year,
        finished_by_month=stats.finished_by_month,
    )
