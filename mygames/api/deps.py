"""Shared API dependencies."""
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from mygames.api.auth import get_current_user
from mygames.config import get_settings
from mygames.constants import ALL_FORMATS
from mygames.core.queue import QueueCoordinator
from mygames.core.view_model import FilterState
from mygames.database import get_session
from mygames.gateways.auth import UserIdentity
from mygames.gateways.catalog import RawgCatalog
from mygames.gateways.games import GamesGateway
from mygames.store import CollectionStore

settings = get_settings()

# One per process: reorder batches in flight, keyed by user
queue_coordinator = QueueCoordinator()


def get_queue_coordinator() -> QueueCoordinator:
    return queue_coordinator


async def get_games_gateway(
    db: AsyncSession = Depends(get_session),
    user: UserIdentity = Depends(get_current_user),
) -> GamesGateway:
    return GamesGateway(db, user.id)


async def get_store(gateway: GamesGateway = Depends(get_games_gateway)) -> CollectionStore:
    """The current user's collection, freshly loaded."""
    store = CollectionStore(gateway)
    await store.refresh()
    return store


async def get_catalog():
    async with RawgCatalog(settings) as catalog:
        yield catalog


def get_filters(
    q: str = "",
    status: Optional[list[str]] = Query(None),
    platform: Optional[list[str]] = Query(None),
    format: str = ALL_FORMATS,
) -> FilterState:
    """Collection filters from the query string; repeat status/platform to select several."""
    return FilterState(
        text=q,
        statuses=frozenset(status or []),
        platforms=frozenset(platform or []),
        format=format,
    )
