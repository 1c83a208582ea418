"""
Test configuration for ESG Tracker tests.

Environment is set BEFORE esgtracker.config is imported anywhere, so the
settings singleton points at a throwaway SQLite file:
  - DATABASE_URL     sqlite+aiosqlite in a temp directory
  - RUN_MIGRATIONS   false (tables come from Base.metadata.create_all)
  - BCRYPT_ROUNDS    4 (minimum cost; keeps signup/login tests fast)

sys.path gets the project root so 'from esgtracker...' resolves when pytest is
run from either the repository root or esgtracker/.
"""
import os
import sys
import tempfile
from pathlib import Path

_package_dir = Path(__file__).parent.parent        # .../esgtracker/
_project_root = _package_dir.parent                 # repository root

if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

_tmp_dir = tempfile.mkdtemp(prefix="esgtracker-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_tmp_dir) / 'test.db'}"
os.environ["RUN_MIGRATIONS"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret-not-for-production-use-0123456789"
os.environ["DEBUG"] = "false"

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from esgtracker import models  # noqa: E402,F401
from esgtracker.database import AsyncSessionLocal, Base, async_engine  # noqa: E402


@pytest_asyncio.fixture
async def tables():
    """Fresh schema per test; the engine pool is dropped so no connection outlives its event loop."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await async_engine.dispose()


@pytest_asyncio.fixture
async def db(tables):
    """AsyncSession for store-level tests. Commits nothing; the schema is dropped afterwards."""
    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client(tables):
    """Async httpx client using ASGI transport — no live server needed."""
    from esgtracker.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
