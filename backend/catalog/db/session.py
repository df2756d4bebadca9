"""Async Session Factory — provides async DB sessions for direct usage outside FastAPI.

Invariants:
    - Meant for scripts (db/seed.py) and migrations, never for request handlers

Design Decisions:
    - Separate from infrastructure/database.py: scripts need a bare factory without
      the pooled, lifespan-managed DatabaseSessionManager
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker


def create_session_factory(
    database_url: str,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory for the given database URL."""
    engine = create_async_engine(database_url, echo=False)
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
