# tests/conftest.py

import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the test database must be configured first
_TEST_DIR = Path(tempfile.mkdtemp(prefix="tasknest-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR / 'test.db'}"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["TIMEZONE"] = "UTC"
os.environ.pop("EMAIL_HOST", None)
os.environ.pop("AUTH_ISSUER", None)

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func
from sqlalchemy.future import select

from tasknest.database import Base, engine, AsyncSessionLocal
from tasknest.main import app
from tasknest.services.users import resolve_user
from tasknest.utils.security import create_access_token


@pytest_asyncio.fixture()
async def database():
    """Fresh schema for every test; connections are dropped afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture()
async def client(database):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth_headers(subject: str = "alice", email: str | None = None, name: str | None = None) -> dict:
    claims = {"sub": subject, "email": email or f"{subject}@example.com"}
    if name:
        claims["name"] = name
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


@pytest.fixture()
def alice() -> dict:
    return auth_headers("alice", name="Alice")


@pytest.fixture()
def bob() -> dict:
    return auth_headers("bob", name="Bob")


@pytest_asyncio.fixture()
async def alice_user(db):
    return await resolve_user(db, "alice", email="alice@example.com", name="Alice")


async def count_rows(model, *criteria) -> int:
    """Row count from a fresh session, so nothing cached in a test's session leaks in."""
    async with AsyncSessionLocal() as session:
        query = select(func.count()).select_from(model)
        if criteria:
            query = query.filter(*criteria)
        return (await session.execute(query)).scalar()
