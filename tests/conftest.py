"""
Pytest configuration for the application
"""
import os
from typing import AsyncGenerator, Dict, List

import httpx
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine
)

# Set test environment before settings are read
os.environ["ENV"] = "test"

from src.core.config import settings  # noqa: E402
from src.db.base import Base  # noqa: E402
from src.db.models.plan import Plan  # noqa: E402
from src.db.session import get_db  # noqa: E402
from src.main import create_application  # noqa: E402
from src.services import limits as limits_service  # noqa: E402


settings.ENV = "test"
settings.DATABASE_URI = "sqlite+aiosqlite:///./test_app.db"


def build_catalog() -> List[Plan]:
    """Plans mirroring the seeded production catalog."""
    return [
        Plan(id="medico", name="Plan Médico", audience="physician",
             min_specialists=1, max_specialists=1, monthly_price=70.0),
        Plan(id="enfermero", name="Plan Enfermería", audience="nurse",
             min_specialists=1, max_specialists=1, monthly_price=20.0),
        Plan(id="paciente-gratis", name="Plan Gratuito", audience="patient",
             min_specialists=0, max_specialists=0, monthly_price=0.0, annual_price=0.0),
        Plan(id="paciente-individual", name="Paciente - Individual", audience="patient",
             min_specialists=0, max_specialists=0, monthly_price=0.0, annual_price=12.99),
        Plan(id="paciente-family", name="Paciente - Plan Familiar", audience="patient",
             min_specialists=0, max_specialists=0, monthly_price=0.0, annual_price=29.99),
        Plan(id="starter", name="Starter", audience="organization",
             min_specialists=1, max_specialists=10, monthly_price=56.0),
        Plan(id="clinica", name="Clínica", audience="organization",
             min_specialists=11, max_specialists=30, monthly_price=49.0),
        Plan(id="pro", name="Pro", audience="organization",
             min_specialists=31, max_specialists=80, monthly_price=42.0),
        Plan(id="enterprise", name="Enterprise", audience="organization",
             min_specialists=81, max_specialists=199, monthly_price=35.0),
    ]


@pytest.fixture
def plan_catalog() -> List[Plan]:
    """Fresh, unsaved catalog plans."""
    return build_catalog()


class FakeRedis:
    """Minimal async Redis stub for rate limiting and idempotency tests."""

    def __init__(self) -> None:
        self.store: Dict[str, int | str] = {}

    async def incr(self, key: str) -> int:
        current = int(self.store.get(key, 0)) + 1
        self.store[key] = current
        return current

    async def expire(self, key: str, seconds: int) -> None:
        self.store.setdefault(f"{key}:ttl", seconds)

    async def set(self, key: str, value: str, ex: int | None = None, nx: bool = False) -> bool:
        if nx and key in self.store:
            return False
        self.store[key] = value
        if ex is not None:
            self.store[f"{key}:ttl"] = ex
        return True


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    """Patch the limits module to use an in-memory Redis stub."""

    fake = FakeRedis()
    monkeypatch.setattr(limits_service, "_redis_client", fake, raising=False)
    yield fake
    monkeypatch.setattr(limits_service, "_redis_client", None, raising=False)


@pytest_asyncio.fixture
async def test_db_engine(tmp_path):
    """
    Create a throwaway SQLite database with all tables.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test_app.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_app(test_db_engine) -> AsyncGenerator[FastAPI, None]:
    """
    Create a FastAPI test application bound to the test database.
    """
    app = create_application()
    session_factory = async_sessionmaker(test_db_engine, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            finally:
                await session.rollback()

    app.dependency_overrides[get_db] = _override_get_db
    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture
async def test_db(test_db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    A session on the test database, with the plan catalog seeded.
    """
    session_factory = async_sessionmaker(test_db_engine, expire_on_commit=False)
    async with session_factory() as session:
        session.add_all(build_catalog())
        await session.commit()
        yield session


@pytest_asyncio.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Create an async HTTP client for testing.
    """
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as client:
        yield client
