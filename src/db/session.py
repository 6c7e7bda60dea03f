"""Async database wiring for the CRM API.

The engine and session factory are built once from settings. Request
handlers receive a session through ``get_async_session``; the dashboard
and the CRUD routers share it for the lifetime of one request.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from src.config.settings import Environment, get_settings


class Base(DeclarativeBase):
    """Declarative base for the CRM tables."""


_settings = get_settings()

engine = create_async_engine(
    _settings.DATABASE_URL,
    echo=_settings.DB_ECHO and _settings.ENVIRONMENT == Environment.DEV,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request.

    Repositories flush but never commit. The commit happens here after the
    handler returns; any exception rolls the request back and re-raises so
    FastAPI answers with its default error response.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
