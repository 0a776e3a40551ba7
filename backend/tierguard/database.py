"""SQLAlchemy async engine & session for the metadata database (SQLite, WAL)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tierguard.config import settings
from tierguard.models import Base

logger = logging.getLogger(__name__)


def _configure_sqlite(dbapi_conn, _connection_record):
    """Apply SQLite PRAGMAs; WAL lets probes read while writers commit."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_path: str | Path) -> AsyncEngine:
    """Create an async engine for the SQLite file at *database_path*."""
    db_path = Path(database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    new_engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        echo=settings.debug and settings.log_level == "DEBUG",
        pool_size=settings.max_db_connections,
        max_overflow=0,
    )
    event.listen(new_engine.sync_engine, "connect", _configure_sqlite)
    return new_engine


engine = build_engine(settings.database_path)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency — yields an async DB session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """Create the tables TierGuard reads and writes if they are missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created/verified at %s", settings.database_path)
