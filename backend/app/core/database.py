"""
Inventory database engine and sessions.

One async engine per process. SQLite (the default, also used by tests) and
PostgreSQL via asyncpg are supported; pool sizing only applies to the latter.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from backend.app.core.config import Settings, get_settings


class Base(DeclarativeBase):
    """Declarative base for the network mapping tables."""
    pass


def engine_options(settings: Settings) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.debug}
    url = settings.database_url

    if url.startswith("sqlite"):
        # aiosqlite runs the connection on a worker thread
        options["connect_args"] = {"check_same_thread": False}
    elif url.startswith("postgresql"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
        if settings.db_ssl_mode == "require":
            options["connect_args"] = {"ssl": "require"}
    return options


def build_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(settings.database_url, **engine_options(settings))


engine = build_engine(get_settings())

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency: one session per request.

    Network mapping requests only read, but the commit/rollback pair keeps
    the unit of work closed cleanly either way.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
