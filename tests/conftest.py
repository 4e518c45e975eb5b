"""Test fixtures: a throwaway SQLite database per test.

Each test gets its own SQLite file (aiosqlite, NullPool) with the schema
created from the models, and its own app instance from create_app() so the
notification hub starts empty. get_db is overridden to hand out sessions on
the test database; get_current_user is overridden with a fixed owner so
protected routes work without real JWTs.
"""

import asyncio
import os
import uuid

# Before tablecall.config is imported: no Redis in tests (rate limiting
# is skipped) and a long enough JWT secret.
os.environ.setdefault("TABLECALL_REDIS_URL", "redis://127.0.0.1:1/0")
os.environ.setdefault("TABLECALL_JWT_SECRET", "test-secret-for-the-tablecall-suite-0123456789")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from tablecall.auth.dependencies import CurrentIdentity, get_current_user
from tablecall.auth.password import hash_password
from tablecall.db.engine import get_db
from tablecall.db.models import Base, User
from tablecall.main import create_app

OWNER_ID = "00000000-0000-0000-0000-000000000001"
OTHER_OWNER_ID = "00000000-0000-0000-0000-000000000002"


def make_engine(tmp_path):
    return create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )


async def _create_schema(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _seed_owners(factory):
    async with factory() as session:
        for user_id, email in (
            (OWNER_ID, "owner@example.com"),
            (OTHER_OWNER_ID, "other@example.com"),
        ):
            session.add(
                User(
                    id=uuid.UUID(user_id),
                    email=email,
                    password_hash=hash_password("password_123"),
                )
            )
        await session.commit()


def override_db(app, factory):
    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db


def _act_as(app, user_id: str):
    app.dependency_overrides[get_current_user] = lambda: CurrentIdentity(
        user_id=user_id, email=None
    )


@pytest_asyncio.fixture()
async def db_engine(tmp_path):
    engine = make_engine(tmp_path)
    await _create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    await _seed_owners(factory)
    return factory


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def app():
    app = create_app()
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app, session_factory):
    """HTTP client acting as OWNER_ID on a fresh database."""
    override_db(app, session_factory)
    _act_as(app, OWNER_ID)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def unauthenticated_client(app, session_factory):
    """HTTP client WITHOUT the auth override, for real JWT flows."""
    override_db(app, session_factory)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def sync_app(tmp_path):
    """App wired to a fresh database, for Starlette TestClient tests.

    TestClient runs the app on its own event loop, so the schema is built
    here with asyncio.run() rather than through the async fixtures.
    """
    engine = make_engine(tmp_path)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(_create_schema(engine))

    app = create_app()
    override_db(app, factory)
    yield app
    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())


@pytest.fixture()
def owner_id():
    return OWNER_ID


@pytest.fixture()
def switch_user(app):
    """Make protected routes see another owner as the caller."""
    def switch(user_id: str = OTHER_OWNER_ID):
        _act_as(app, user_id)
    return switch


@pytest.fixture()
def drain():
    """Close a hub connection and return everything that was queued for it."""
    async def _drain(connection) -> list[str]:
        connection.close()
        return [message async for message in connection.messages()]
    return _drain
