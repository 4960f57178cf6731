"""Database engine configuration for the workshop APIs."""

from contextlib import contextmanager
from typing import AsyncGenerator, Generator

from sqlalchemy import create_engine, text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import Session, sessionmaker

from podprobe.config import get_settings

from .schema import Base

settings = get_settings()

# Sync and async engines share one database (a SQLite file by default)
sync_engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
    echo=False,
    pool_pre_ping=True,
)

async_engine = create_async_engine(
    settings.async_database_url,
    echo=False,
    pool_pre_ping=True,
)

SyncSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=sync_engine)
AsyncSessionLocal = async_sessionmaker(
    class_=AsyncSession,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=async_engine,
)


def init_models():
    """Create database tables."""
    Base.metadata.create_all(bind=sync_engine)


def ping() -> None:
    """Run a trivial query; raises if the database is unreachable."""
    with sync_engine.connect() as conn:
        conn.execute(text("SELECT 1"))


@contextmanager
def get_sync_db_session() -> Generator[Session, None, None]:
    """Get synchronous database session."""
    session = SyncSessionLocal()
    try:
        yield session
    finally:
        session.close()


async def get_async_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get asynchronous database session."""
    async with AsyncSessionLocal() as session:
        yield session


async def dispose_engines() -> None:
    """Close pooled connections of both engines."""
    await async_engine.dispose()
    sync_engine.dispose()
