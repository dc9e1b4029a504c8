"""
Database configuration and session management
Async SQLAlchemy engine for SQLite (local/test) and PostgreSQL (production)
"""

from collections.abc import AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from shared.config import config
from shared.logging_utils import setup_logging

logger = setup_logging("database")

Base = declarative_base()

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def build_database_url() -> str:
    """
    Build database URL from environment variables with fallback to a local SQLite file
    Sync driver prefixes are rewritten to their async equivalents
    """
    database_url = config.get("database_url")
    if not database_url:
        database_url = "sqlite+aiosqlite:///./leadforge.db"
        logger.info("DATABASE_URL not set, using local SQLite database")
        return database_url

    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif database_url.startswith("sqlite:///"):
        database_url = database_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return database_url


def create_database_engine(database_url: str | None = None) -> AsyncEngine:
    """Create async SQLAlchemy engine with appropriate configuration"""
    database_url = database_url or build_database_url()

    if database_url.startswith("sqlite"):
        engine = create_async_engine(database_url, connect_args={"check_same_thread": False})
        logger.info("Using SQLite database engine")
    else:
        engine = create_async_engine(
            database_url,
            pool_pre_ping=True,
            pool_recycle=3600,
            pool_size=10,
            max_overflow=20,
            echo=False,
        )
        logger.info("Using PostgreSQL database engine with connection pooling")
    return engine


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = create_database_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory, creating it on first use."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


def async_session() -> AsyncSession:
    """Open a new session from the process-wide factory."""
    return get_session_factory()()


def configure_database(database_url: str) -> async_sessionmaker[AsyncSession]:
    """Point the module at a different database (used by tests and scripts)."""
    global _engine, _session_factory
    _engine = create_database_engine(database_url)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _session_factory


async def get_async_db() -> AsyncIterator[AsyncSession]:
    """Dependency for FastAPI to get an async database session"""
    async with async_session() as session:
        yield session


async def check_connection() -> bool:
    """Run a trivial query against the database."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection test failed: {e}")
        return False


async def init_database(engine: AsyncEngine | None = None) -> None:
    """Initialize database tables"""
    # Register ORM classes on Base.metadata
    import models.database  # noqa: F401

    engine = engine or get_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database tables: {e}")
        raise
