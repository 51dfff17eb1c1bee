"""
Database engine and session factory.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storefront.config.settings import settings


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create the async engine.

    asyncpg connections get a per-command timeout so no query can block
    longer than request_timeout_seconds.

    Args:
        database_url: Override for settings.database_url

    Returns:
        Configured AsyncEngine
    """
    url = database_url or settings.async_database_url
    connect_args = {}
    if url.startswith("postgresql+asyncpg"):
        connect_args["command_timeout"] = settings.request_timeout_seconds

    return create_async_engine(
        url,
        echo=settings.database_echo,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to engine."""
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
