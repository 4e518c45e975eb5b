"""Async SQLAlchemy engine and session factory.

One engine with connection pooling, one AsyncSession per request via the
get_db dependency. Statements carry a short server-side timeout so a slow
database fails a request fast instead of hanging it.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tablecall.config import settings


def _engine_options(url: str) -> dict:
    """Pool and timeout options that only make sense for PostgreSQL."""
    if not url.startswith("postgresql"):
        return {}
    return {
        "pool_size": 5,
        "max_overflow": 15,
        "connect_args": {"command_timeout": settings.db_command_timeout},
    }


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url),
)

# Session factory: each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency: yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
