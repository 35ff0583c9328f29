"""
Database engines and sessions
The API runs on the async engine; Celery workers use the sync engine
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool
from contextlib import contextmanager
from typing import Any, AsyncGenerator, Dict, Generator
import logging

from .config import settings

logger = logging.getLogger(__name__)

def engine_options(url: str) -> Dict[str, Any]:
    """Pooling for server databases; SQLite opens a connection per checkout"""
    options: Dict[str, Any] = {"echo": settings.DATABASE_ECHO}
    if url.startswith("sqlite"):
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
            pool_pre_ping=True,
        )
    return options

engine = create_async_engine(settings.database_url_async, **engine_options(settings.database_url_async))
sync_engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

SessionLocal = sessionmaker(sync_engine, autoflush=False)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session dependency
    Commits whatever the handler left pending, rolls back on error
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

@contextmanager
def get_db_sync_context() -> Generator[Session, None, None]:
    """Sync session for Celery tasks, committed on clean exit"""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

async def init_db() -> None:
    """Create missing tables"""
    from app.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created successfully")

async def close_db() -> None:
    await engine.dispose()
    logger.info("Database connections closed")
