"""
Async engine and session handling (SQLAlchemy 2.0).

PostgreSQL in production; SQLite via aiosqlite for local runs and tests.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy import event, func, select, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from storyquest.config import get_settings
from storyquest.logging_config import get_logger

settings = get_settings()
logger = get_logger(__name__)


def _build_engine(url: str) -> AsyncEngine:
    if make_url(url).get_backend_name() != "sqlite":
        return create_async_engine(
            url,
            echo=settings.debug,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )

    # One connection per session; SQLite serialises writers anyway
    sqlite_engine = create_async_engine(
        url,
        echo=settings.debug,
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )

    @event.listens_for(sqlite_engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        for pragma in ("journal_mode=WAL", "foreign_keys=ON", "busy_timeout=5000"):
            cursor.execute(f"PRAGMA {pragma}")
        cursor.close()

    return sqlite_engine


engine = _build_engine(settings.database_url)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: commit when the handler returns, roll back when it raises."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Same unit-of-work rules as get_db, for code running outside a request."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ping_database() -> bool:
    """True when a trivial query round-trips."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database ping failed", extra={"error": str(e)})
        return False
    return True


async def init_db() -> None:
    """Create missing tables; seed the year program when configured and empty."""
    # Importing the package registers every table on Base.metadata
    from storyquest.kernel.models import Base, ProgramStory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if not settings.curriculum_autoseed:
        return

    from storyquest.pedagogy.year_program import seed_year_program

    async with session_scope() as session:
        stories = (await session.execute(select(func.count(ProgramStory.id)))).scalar_one()
        if stories == 0:
            await seed_year_program(session)


async def close_db() -> None:
    await engine.dispose()
