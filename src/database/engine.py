"""
Database engine configuration for the Turnstile collector

Async SQLAlchemy 2.0 setup with connection pooling
"""

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from config.config import DATABASE_URL, ENVIRONMENT
from src.database.models import Base


# Global engine and session maker
engine: AsyncEngine | None = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Create and configure async database engine

    Returns:
        Configured AsyncEngine instance
    """
    global engine

    if engine is None:
        is_production = ENVIRONMENT == "production"

        if DATABASE_URL.startswith("sqlite"):
            # Local development / ephemeral runs
            engine = create_async_engine(DATABASE_URL, echo=False)
        else:
            engine = create_async_engine(
                DATABASE_URL,
                # The collector is a single sequential worker
                poolclass=AsyncAdaptedQueuePool,
                pool_size=5 if is_production else 2,
                max_overflow=5,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=3600,  # Recycle connections every hour
                echo=False,
                echo_pool=False,
                connect_args={
                    "statement_cache_size": 0,  # Disable prepared statement cache
                    "server_settings": {
                        "application_name": "turnstile_collector",
                        "jit": "off",
                    },
                },
            )

        logger.info(f"Database engine created - Environment: {ENVIRONMENT}")

    return engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Create async session maker

    Returns:
        Configured async_sessionmaker instance
    """
    global AsyncSessionLocal

    if AsyncSessionLocal is None:
        eng = get_engine()
        AsyncSessionLocal = async_sessionmaker(
            eng,
            class_=AsyncSession,
            expire_on_commit=False,  # Important for async!
            autoflush=False,
            autocommit=False,
        )

        logger.info("Session maker created")

    return AsyncSessionLocal


async def init_db() -> None:
    """
    Initialize database - create all tables

    WARNING: This creates tables if they don't exist.
    For production, use Alembic migrations instead.
    """
    eng = get_engine()

    logger.info("Creating database tables...")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created successfully")


async def dispose_engine() -> None:
    """
    Dispose database engine and close all connections

    Call this on shutdown
    """
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
        logger.info("Database engine disposed")
        engine = None
        AsyncSessionLocal = None


async def check_connection() -> bool:
    """
    Check database connection

    Returns:
        True if connection successful, False otherwise
    """
    try:
        eng = get_engine()
        async with eng.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection check: OK")
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


if __name__ == "__main__":
    # Test database connection
    import asyncio
    from config.logging import setup_logging

    setup_logging()

    async def test():
        print("Testing database connection...")

        is_connected = await check_connection()
        print(f'Connection: {"✅ OK" if is_connected else "❌ FAILED"}')

        # Initialize tables (use Alembic in production!)
        if is_connected:
            print("\nCreating tables...")
            await init_db()
            print("✅ Tables created")

        await dispose_engine()
        print("\n✅ Engine disposed")

    asyncio.run(test())
