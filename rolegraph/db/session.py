"""Engine and session factories."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from rolegraph.core.config import Settings, get_settings


def create_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """Create the async engine for the configured database URL."""
    settings = settings or get_settings()
    connect_args = {}
    if settings.database_url.startswith("sqlite"):
        # Concurrent writers wait on the file lock instead of failing
        connect_args["timeout"] = 30
    return create_async_engine(
        settings.database_url,
        echo=settings.echo_sql,
        connect_args=connect_args,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )
