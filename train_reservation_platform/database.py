"""
Database connection management and session handling.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
    AsyncEngine,
)

from .config import get_settings
from .models.base import Base
from .cache import init_cache, close_cache

logger = logging.getLogger(__name__)

# Global engine and session factory
engine: AsyncEngine | None = None
async_session_factory: async_sessionmaker[AsyncSession] | None = None


def _is_sqlite(database_url: str) -> bool:
    return make_url(database_url).get_backend_name() == "sqlite"


def _install_sqlite_transaction_hooks(sqlite_engine: AsyncEngine) -> None:
    """
    Make every SQLite transaction start with BEGIN IMMEDIATE.

    The driver's own implicit BEGIN is disabled so the write lock is taken
    before the first read of a transaction, which serializes the seat
    availability check and the conditional claim across connections.
    """

    @event.listens_for(sqlite_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_database_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create and configure the database engine with connection pooling."""
    settings = get_settings()
    database_url = database_url or settings.database_url

    if _is_sqlite(database_url):
        sqlite_engine = create_async_engine(
            database_url,
            echo=settings.debug,
            connect_args={"timeout": 30},
        )
        _install_sqlite_transaction_hooks(sqlite_engine)
        return sqlite_engine

    engine_kwargs = {}
    if settings.database_isolation_level:
        engine_kwargs["isolation_level"] = settings.database_isolation_level

    return create_async_engine(
        database_url,
        # Connection pool configuration for concurrent access
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,  # Validate connections before use
        pool_recycle=3600,   # Recycle connections every hour
        echo=settings.debug,
        connect_args={
            "server_settings": {
                "application_name": "train_reservation_platform",
            }
        },
        **engine_kwargs
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory for database sessions."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )


async def init_database(
    database_url: Optional[str] = None,
    seed_seats: Optional[bool] = None,
    run_consistency_audit: Optional[bool] = None,
    use_cache: Optional[bool] = None,
) -> None:
    """Initialize database connection, create tables and prepare seat data."""
    global engine, async_session_factory

    settings = get_settings()
    if seed_seats is None:
        seed_seats = settings.seed_seats_on_startup
    if run_consistency_audit is None:
        run_consistency_audit = settings.run_consistency_audit_on_startup
    if use_cache is None:
        use_cache = settings.enable_cache

    logger.info("Initializing database connection...")

    engine = create_database_engine(database_url)
    async_session_factory = create_session_factory(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Imported here; the services import this module for sessions
    from .services.seat_service import SeatService
    from .services.consistency_service import ConsistencyService

    if seed_seats:
        async with get_db_session() as session:
            created = await SeatService(session).seed_seats()
        if created:
            logger.info("Seeded %d seats", created)

    if run_consistency_audit:
        async with get_db_session() as session:
            await ConsistencyService(session).fix_seat_consistency()

    if use_cache:
        await init_cache()

    logger.info("Database initialized successfully")


async def close_database() -> None:
    """Close database connections."""
    global engine, async_session_factory

    if engine:
        logger.info("Closing database connections...")
        await engine.dispose()
        engine = None
        async_session_factory = None
        logger.info("Database connections closed")

    await close_cache()


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session with automatic cleanup.

    Usage:
        async with get_db_session() as session:
            result = await session.execute(query)
    """
    if async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except BaseException:
            # Includes request cancellation; nothing half-done may survive
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for getting database sessions.

    Usage in FastAPI endpoints:
        @app.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with get_db_session() as session:
        yield session


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Run a block in its own transaction on ``session``.

    A transaction autobegun by earlier reads on the same session is ended
    first, so the block always starts from a fresh snapshot and its writes
    are committed, or rolled back, as one unit.
    """
    if session.in_transaction():
        await session.commit()
    async with session.begin():
        yield session
