"""
Pytest configuration and fixtures for the Turnstile collector tests
"""

import pytest
from typing import AsyncGenerator
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from src.chains.l1_client import DecodedLog
from src.database.models import Base


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TOKEN_A = "0x" + "aa" * 20
TOKEN_B = "0x" + "bb" * 20
SUBMITTER = "0x" + "5e" * 20
L2_TOKEN_A = "0x" + "0a" * 32
L2_PORTAL = "0x" + "0f" * 32


def make_log(event, tx_hash, args, block_number=10, log_index=0, address="0x" + "01" * 20):
    """Build a decoded L1 log the way L1Client returns it"""
    return DecodedLog(
        event=event,
        address=address,
        block_number=block_number,
        transaction_hash=tx_hash,
        log_index=log_index,
        args=args,
    )


@pytest.fixture(scope="function")
async def test_db_engine():
    """
    Create test database engine
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_maker(test_db_engine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to the test database
    """
    return async_sessionmaker(
        test_db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """
    Create test database session
    """
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def log_records():
    """
    Capture loguru records emitted during a test
    """
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
