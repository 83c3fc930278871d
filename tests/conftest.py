"""Pytest fixtures shared across the test suite."""
import asyncio
import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="mygames-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'mygames.db')}")
os.environ.setdefault("SUPABASE_URL", "https://auth.example.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
os.environ.setdefault("RAWG_API_KEY", "rawg-key")

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from mygames.database import Base
from mygames.gateways.catalog import details_cache
from mygames import models  # noqa: F401


@pytest.fixture
def session_maker(tmp_path):
    """Session factory bound to a fresh SQLite database with the schema created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'games.db'}", poolclass=NullPool)

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_schema())
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture(autouse=True)
def clear_catalog_cache():
    details_cache.clear()
    yield
    details_cache.clear()
