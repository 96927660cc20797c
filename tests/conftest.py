"""Test fixtures — a throwaway SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own database file under tmp_path, with the
   schema created from the ORM models.
2. NullPool means every session opens its own connection, the way
   separate requests would in production. That matters here: the
   audit sink writes through its own sessions, and the lockout tests
   race several logins against one row.
3. The app's get_db and get_audit_sink are overridden to point at the
   test database; auth itself is NOT mocked, so every protected route
   goes through the real bearer-token check.

Environment is set before anything from authgate is imported, because
Settings is built at import time and refuses to start without a key.
"""

import os

os.environ.setdefault("AUTHGATE_JWT_SECRET", "test-signing-secret-0123456789abcdef0123456789")
os.environ.setdefault("AUTHGATE_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("AUTHGATE_BCRYPT_ROUNDS", "4")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from authgate.api.auth import get_audit_sink  # noqa: E402
from authgate.auth.dependencies import get_token_codec  # noqa: E402
from authgate.db.engine import get_db  # noqa: E402
from authgate.db.models import Base  # noqa: E402
from authgate.events.audit import AuditSink  # noqa: E402
from authgate.main import app  # noqa: E402
from authgate.services.auth_service import AuthService  # noqa: E402

STRONG_PASSWORD = "Secur3Pass!!"


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    """Fresh database file with all tables, dropped after the test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'authgate.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def audit(session_factory):
    return AuditSink(session_factory)


@pytest_asyncio.fixture()
async def codec():
    return get_token_codec()


@pytest_asyncio.fixture()
async def auth_service(db_session, audit, codec):
    return AuthService(db_session, audit, codec)


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client with the app's database and audit sink overridden.

    Learn: each request gets its own session from the test factory,
    same as get_db does in production.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    def override_get_audit_sink():
        return AuditSink(session_factory)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_sink] = override_get_audit_sink

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
