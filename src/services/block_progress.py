# coding: utf-8
"""
Block progress service - durable "last scanned block" per ledger

Rows are created on the first successful scan of a ledger and only ever
moved by the collector. Exactly one collector process may own the table.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.enums import Chain
from src.database.crud import get_block_progress, upsert_block_progress
from src.database.models import BlockProgress


class BlockProgressService:
    """
    Read/update the scan checkpoint of each chain

    Every call opens its own session so L1 and L2 reads can run
    concurrently.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def get_last_scanned_block(self, chain: Chain) -> int:
        """
        Returns:
            Last scanned block, 0 if the chain was never scanned
        """
        async with self.session_maker() as session:
            progress = await get_block_progress(session, chain)

        return progress.last_scanned_block if progress else 0

    async def update_last_scanned_block(self, chain: Chain, block_number: int) -> None:
        async with self.session_maker() as session:
            await upsert_block_progress(session, chain, block_number)

        logger.debug(f"Updated {Chain(chain).value} last scanned block to {block_number}")

    async def get_progress(self, chain: Chain) -> Optional[BlockProgress]:
        """Full progress row (with timestamps), None if never scanned"""
        async with self.session_maker() as session:
            return await get_block_progress(session, chain)
