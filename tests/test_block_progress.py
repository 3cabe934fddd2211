"""
Unit tests for BlockProgressService
"""

import pytest

from src.core.enums import Chain
from src.services.block_progress import BlockProgressService


@pytest.fixture
def block_progress(session_maker):
    return BlockProgressService(session_maker)


@pytest.mark.asyncio
async def test_never_scanned_returns_zero(block_progress):
    assert await block_progress.get_last_scanned_block(Chain.L1) == 0
    assert await block_progress.get_last_scanned_block(Chain.L2) == 0
    # Reading does not create the row
    assert await block_progress.get_progress(Chain.L1) is None


@pytest.mark.asyncio
async def test_update_then_read(block_progress):
    await block_progress.update_last_scanned_block(Chain.L1, 1100)
    await block_progress.update_last_scanned_block(Chain.L2, 299)

    assert await block_progress.get_last_scanned_block(Chain.L1) == 1100
    assert await block_progress.get_last_scanned_block(Chain.L2) == 299


@pytest.mark.asyncio
async def test_update_is_idempotent(block_progress):
    """L2 may store the same value on consecutive cycles"""
    await block_progress.update_last_scanned_block(Chain.L2, 200)
    await block_progress.update_last_scanned_block(Chain.L2, 200)

    progress = await block_progress.get_progress(Chain.L2)
    assert progress.last_scanned_block == 200


@pytest.mark.asyncio
async def test_accepts_plain_string_chain(block_progress):
    await block_progress.update_last_scanned_block("L1", 5)
    assert await block_progress.get_last_scanned_block(Chain.L1) == 5
