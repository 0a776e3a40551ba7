"""Test fixtures — in-memory SQLite database, FastAPI test client, fake command runner."""

import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tierguard.database import get_db
from tierguard.main import create_app
from tierguard.models import Base
from tierguard.services.command_runner import CommandResult


class FakeRunner:
    """Command runner returning canned output instead of spawning processes."""

    def __init__(self):
        self.calls = []
        self.stdout = ""
        self.error = None
        self.delay = 0.0

    async def run(self, args, *, timeout=None, env=None):
        self.calls.append({"args": list(args), "env": env, "timeout": timeout})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return CommandResult(args=tuple(args), returncode=0, stdout=self.stdout, stderr="")


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Provide an async in-memory SQLite session for tests."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(db_session: AsyncSession):
    """Application with the DB dependency bound to the test session."""
    app = create_app()

    async def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    return app


@pytest_asyncio.fixture
async def client(app):
    """Provide an async test client for the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
