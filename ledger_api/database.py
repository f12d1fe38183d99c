"""
Database engine, session management, unit of work, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - engine: The async database engine (connection pool for production DBs)
  - AsyncSessionLocal: Factory for creating async database sessions
  - Base: Declarative base class that all ORM models inherit from
  - connect() / disconnect(): Explicit lifecycle, driven by the app lifespan
  - get_db(): FastAPI dependency that provides a session per request
  - unit_of_work(): All-or-nothing scope for multi-row writes

Architecture note:
  We use async SQLAlchemy (with aiosqlite for SQLite) so the API can handle
  concurrent requests without blocking. When migrating to PostgreSQL, only
  the DATABASE_URL needs to change (to use asyncpg driver).

  Services never import the engine or the session factory. They receive an
  AsyncSession as their first argument, which is what lets the test suite
  run them against an in-memory database.

Session lifecycle:
  Each API request gets its own session via get_db(). The session commits
  on success and rolls back on any exception, ensuring data consistency.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from ledger_api.config import settings


# Create the async engine.
# echo=True in debug mode logs all SQL statements.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# Session factory: creates new AsyncSession instances.
# expire_on_commit=False prevents lazy-load errors after commit:
# without this, accessing attributes on a committed object would trigger
# a synchronous DB call, which fails in async context.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class, which provides:
      - Metadata tracking for table creation and migrations
      - Common declarative mapping features
    """
    pass


async def connect() -> None:
    """
    Open the store: create all tables that don't exist yet.

    A convenience for development — in production, you'd run versioned
    migrations instead.
    """
    # Register every model on Base.metadata before create_all runs
    import ledger_api.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def disconnect() -> None:
    """Close the store: dispose of the engine and its pooled connections."""
    await engine.dispose()


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...

    The session is committed on success and rolled back on any exception
    (domain errors included — a rejected request leaves nothing behind),
    then closed when the request completes.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Group writes into a single atomic commit.

    Everything added or modified inside the block is flushed and committed
    together when the block exits normally. If anything raises — a flush
    failure, a constraint violation, a stale row version — the whole session
    transaction is rolled back and the exception propagates. Readers never
    observe a state where only part of the block was applied.

    Usage:
        async with unit_of_work(db):
            db.add(txn)
            account.balance_cents = new_balance
    """
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
