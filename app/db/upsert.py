"""
Dialect-specific ``INSERT … ON CONFLICT`` statements.

Both PostgreSQL and SQLite (tests) support ``ON CONFLICT``; SQLAlchemy
exposes it only through the dialect's own ``insert`` construct.
"""

from __future__ import annotations

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def dialect_insert(db: AsyncSession, table: Table):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported on {dialect}")
