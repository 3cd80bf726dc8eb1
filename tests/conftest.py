from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool

from app.core.config import GatewayConfig
from app.core.database import create_database
from app.core.errors import ExecutionError
from app.main import create_app

TEST_SECRET = "test-secret"


class FakeDatabase:
    """Records every statement it is handed instead of executing it."""

    def __init__(self, name: str = "default", rows=None, error: str = None):
        self.name = name
        self.rows = rows or []
        self.error = error
        self.calls = []

    async def all(self, sql, params=()):
        self.calls.append(("all", sql, list(params)))
        if self.error:
            raise ExecutionError(self.error)
        return {
            "results": self.rows,
            "success": True,
            "meta": {"changes": 0, "binding": self.name},
        }

    async def run(self, sql, params=()):
        self.calls.append(("run", sql, list(params)))
        if self.error:
            raise ExecutionError(self.error)
        return {
            "success": True,
            "meta": {"changes": 1, "last_row_id": 7, "binding": self.name},
        }

    async def dispose(self):
        pass


@asynccontextmanager
async def make_client(config: GatewayConfig):
    app = create_app(config)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def auth_headers():
    return {"Authorization": TEST_SECRET}


# Client wired to the recording fake
@pytest_asyncio.fixture(scope="function")
async def client(fake_db):
    async with make_client(GatewayConfig(secret=TEST_SECRET, database=fake_db)) as ac:
        yield ac


# Real in-memory SQLite database with a users table
@pytest_asyncio.fixture(scope="function")
async def sqlite_db():
    db = create_database("sqlite+aiosqlite://", poolclass=StaticPool)
    await db.run(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, age INTEGER)"
    )
    yield db
    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def sqlite_client(sqlite_db):
    async with make_client(GatewayConfig(secret=TEST_SECRET, database=sqlite_db)) as ac:
        yield ac
