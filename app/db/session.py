"""
Async SQLAlchemy engine & session factory.

PostgreSQL (asyncpg) in production; the pool is sized from settings.
SQLite (aiosqlite) gets the driver defaults.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings

engine_args: dict = {"echo": False, "pool_pre_ping": True}

if settings.DATABASE_URL.startswith("postgresql"):
    engine_args.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=300,
    )

engine = create_async_engine(settings.DATABASE_URL, **engine_args)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
