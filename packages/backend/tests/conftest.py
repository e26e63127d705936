"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own Database on `sqlite+aiosqlite:///:memory:`.
   StaticPool pins a single connection, so every session sees the same
   in-memory schema.
2. create_app() receives that Database and test Settings explicitly —
   nothing is read from module globals.
3. httpx's ASGITransport doesn't run the lifespan, so the fixture creates
   the tables and disposes the engine itself.

Tests drive the real auth pipeline: register → login → Bearer token.
There is no auth override; authorization is the thing under test.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from helpers import TEST_DB_URL, make_settings
from taskhub.db.engine import Database
from taskhub.main import create_app


@pytest.fixture()
def settings():
    return make_settings()


@pytest_asyncio.fixture()
async def database():
    db = Database(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    try:
        yield db
    finally:
        await db.close()


@pytest_asyncio.fixture()
async def db_session(database):
    """Session for service-level tests."""
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture()
async def app(settings, database):
    return create_app(settings=settings, database=database)


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def file_database(tmp_path):
    """File-backed SQLite with a real connection pool.

    Learn: the in-memory fixture above pins every session to ONE
    connection, so concurrent sessions share a transaction. Tests that
    race requests against each other need separate connections, each
    with its own transaction, like a real server has.
    """
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'taskhub.db'}")
    await db.create_all()
    try:
        yield db
    finally:
        await db.close()


@pytest_asyncio.fixture()
async def file_client(settings, file_database):
    app = create_app(settings=settings, database=file_database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
