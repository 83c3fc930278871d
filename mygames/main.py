"""MyGames collection tracker - FastAPI Application."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mygames.config import get_settings
from mygames.database import init_db
from mygames.exceptions import register_exception_handlers
from mygames.api import auth_router, games_router, queue_router, catalog_router, stats_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting MyGames service")
    await init_db()

    yield

    logger.info("Shutting down MyGames service")


# Create application
app = FastAPI(
    title="MyGames",
    description="Personal video game collection tracker",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# Health check (no auth required)
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat(), "service": "mygames"}


# Root info
@app.get("/")
async def root():
    """API information."""
    return {
        "service": "MyGames",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }


# Include routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(games_router, prefix="/api/v1")
app.include_router(queue_router, prefix="/api/v1")
app.include_router(catalog_router, prefix="/api/v1")
app.include_router(stats_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "mygames.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
