"""API routes."""
from mygames.api.auth import router as auth_router
from mygames.api.games import router as games_router
from mygames.api.queue import router as queue_router
from mygames.api.catalog import router as catalog_router
from mygames.api.stats import router as stats_router

__all__ = [
    "auth_router",
    "games_router",
    "queue_router",
    "catalog_router",
    "stats_router",
]
