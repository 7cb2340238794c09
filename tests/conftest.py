"""Pytest configuration and fixtures."""

import asyncio
import os

# Settings are read at import time, so the environment is fixed up first
os.environ["AUTH_IDENTITY"] = "username"
os.environ["ENFORCE_UNIQUE_IDENTITY"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"

import pytest
from fakeredis import FakeAsyncRedis
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.future import select
from sqlalchemy.pool import NullPool

from damibook import database
from damibook.config import settings
from damibook.database import get_db
from damibook.main import app
from damibook.models import User
from damibook.services.sessions import SessionStore, get_session_store


class TestDatabase:
    """Synchronous access to the test database from test code."""

    __test__ = False

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def run(self, fn):
        """Run `await fn(session)` on a fresh session and return its result."""
        async def _run():
            async with self.session_factory() as session:
                return await fn(session)
        return asyncio.run(_run())

    def all(self, model, **filters):
        async def _all(session):
            result = await session.execute(select(model).filter_by(**filters).order_by(model.id))
            return list(result.scalars().all())
        return self.run(_all)

    def count(self, model, **filters):
        return len(self.all(model, **filters))

    def add(self, *rows):
        async def _add(session):
            session.add_all(rows)
            await session.commit()
            for row in rows:
                await session.refresh(row)
            return rows
        return self.run(_add)

    def user(self, username) -> User:
        return self.all(User, username=username)[0]


@pytest.fixture
def session_factory(tmp_path, monkeypatch):
    """Fresh SQLite database per test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'damibook.db'}",
        poolclass=NullPool,
    )
    # The app lifespan creates the tables through database.engine
    monkeypatch.setattr(database, "engine", engine)
    yield async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    return TestDatabase(session_factory)


@pytest.fixture
def redis_client():
    return FakeAsyncRedis(decode_responses=True)


@pytest.fixture
def client(session_factory, redis_client):
    """Create a test client with database and session store overrides."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    store = SessionStore(redis_client)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def session_headers(token):
    """Send a session token explicitly, bypassing the client's cookie jar."""
    return {"Cookie": f"{settings.SESSION_COOKIE_NAME}={token}"}


def register(client, username, password, **extra):
    return client.post("/register", data={"username": username, "password": password, **extra})


def login(client, username, password):
    return client.post("/login", data={"username": username, "password": password})


@pytest.fixture
def alice(client, db):
    """Register alice and leave her logged in."""
    response = register(client, "alice", "pw1")
    assert response.status_code == 200
    return db.user("alice")


@pytest.fixture
def bob(client, db, alice):
    """Register bob (this logs him in), then log alice back in."""
    register(client, "bob", "pw2")
    user = db.user("bob")
    login(client, "alice", "pw1")
    return user
