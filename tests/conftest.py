# tests/conftest.py
import os

# Settings are read at import time
os.environ["APP_ENV"] = "test"
os.environ["DEBUG"] = "false"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime, timedelta, timezone

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from src.common.config import settings
from src.common.database.database import get_db_session
from src.main import app
from src.models.models import Base, Clinic


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'clinic.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def clinic(session):
    clinic = Clinic(name="Clinique du Parc")
    session.add(clinic)
    await session.commit()
    return clinic


@pytest_asyncio.fixture
async def other_clinic(session):
    clinic = Clinic(name="Cabinet des Lilas")
    session.add(clinic)
    await session.commit()
    return clinic


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client against the app, sharing the test database."""
    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_token():
    """Mint admin bearer tokens the way the login service would."""
    def _make(clinic_id=None, role="ADMIN", user_id="admin-1", expires_minutes=30):
        payload = {
            "sub": user_id,
            "role": role,
            "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
        }
        if clinic_id is not None:
            payload["clinic_id"] = str(clinic_id)
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return _make


@pytest.fixture
def auth_headers(make_token, clinic):
    return {"Authorization": f"Bearer {make_token(clinic.id)}"}


@pytest.fixture
def media_root(tmp_path, monkeypatch):
    root = tmp_path / "media"
    root.mkdir()
    monkeypatch.setattr(settings, "MEDIA_ROOT", str(root))
    return root
