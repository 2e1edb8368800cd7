"""Fixtures for HTTP dashboard API tests (FastAPI)."""

from __future__ import annotations

from collections.abc import AsyncIterator, Generator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

import skis.dashboard as dash_module
from skis.core import DB_FILENAME, SkisDB
from skis.dashboard import create_app
from tests.conftest import PopulatedDB, populate


@pytest.fixture
def dashboard_db(tmp_path: Path) -> Generator[PopulatedDB, None, None]:
    """Populated store opened with check_same_thread=False, as the server opens it."""
    db = SkisDB(tmp_path / DB_FILENAME, check_same_thread=False)
    db.initialize()
    yield populate(db)
    db.close()


@pytest.fixture
async def client(dashboard_db: PopulatedDB) -> AsyncIterator[AsyncClient]:
    """Create a test client backed by the populated store."""
    dash_module._db = dashboard_db.db
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    dash_module._db = None
