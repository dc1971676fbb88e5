"""
TimeLedger Database Configuration

SQLAlchemy async engine with SQLite for development.
Supports migration to PostgreSQL for production.
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from .config import settings


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, applying SQLite pragmas when needed."""
    is_sqlite = database_url.startswith("sqlite")
    connect_args = {}
    if is_sqlite:
        connect_args = {
            "timeout": 30,  # Wait up to 30 seconds for locks
            "check_same_thread": False,
        }

    engine_kwargs = {}
    if ":memory:" in database_url:
        # One shared connection, otherwise every session sees an empty database
        engine_kwargs["poolclass"] = StaticPool

    new_engine = create_async_engine(
        database_url,
        echo=echo,
        future=True,
        connect_args=connect_args,
        **engine_kwargs,
    )

    if is_sqlite:
        # Enable foreign keys and WAL mode for SQLite
        @event.listens_for(new_engine.sync_engine, "connect")
        def configure_sqlite(dbapi_connection, connection_record):
            """Configure SQLite for better concurrency."""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if ":memory:" not in database_url:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=30000")
            cursor.close()

    return new_engine


engine = build_engine(settings.database_url, echo=settings.debug)

# Session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """Dependency to get database session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(target: AsyncEngine = engine) -> None:
    """Initialize database tables."""
    # Make sure every model is registered on the metadata
    from . import models  # noqa: F401

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
