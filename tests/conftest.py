"""
Pytest configuration and shared fixtures for Tajiri tests.

Settings are read at import time, so the environment is prepared before any
tajiri module is imported.
"""

import os
import tempfile
from pathlib import Path

_tmp_dir = Path(tempfile.mkdtemp(prefix="tajiri-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_tmp_dir / 'app.db'}")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("JOB_TRIGGER_TOKEN", "test-job-token")
os.environ.setdefault("OPENROUTER_API_KEY", "")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from tajiri.core.database import Base, get_async_session, get_session_factory  # noqa: E402
from tajiri.core.security import create_access_token  # noqa: E402
from tajiri.crud.user import create_user  # noqa: E402
from tajiri.main import app  # noqa: E402
import tajiri.models  # noqa: E402,F401


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """A fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client bound to the app, with database dependencies pointed at the test database."""
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    async def _make_user(email="amina@example.com", timezone="Africa/Dar_es_Salaam", display_name="Amina"):
        return await create_user(email, db, display_name=display_name, timezone=timezone)
    return _make_user


@pytest_asyncio.fixture
async def user(make_user):
    return await make_user()


@pytest.fixture
def headers_for():
    def _headers_for(user):
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}
    return _headers_for


@pytest.fixture
def auth_headers(user, headers_for):
    return headers_for(user)


@pytest.fixture
def job_headers():
    return {"X-Job-Token": "test-job-token"}
