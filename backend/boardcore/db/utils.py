"""Database utility functions and common queries."""

from sqlalchemy import text

from boardcore.db.session import async_session_factory, engine
from boardcore.models.base import Base


async def create_tables() -> None:
    """Create all tables registered on the declarative base."""
    # Import all models so they register with Base.metadata
    import boardcore.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_database_health() -> dict[str, object]:
    """Check if database is accessible and responsive.

    Returns:
        dict with 'healthy' boolean and optional 'error' message
    """
    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
            return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
