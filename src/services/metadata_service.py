# coding: utf-8
"""
Token metadata service

Makes sure name/symbol/decimals of an L1 token are stored, reading them from
chain only when the database does not have them yet.
"""

from typing import Optional, Set

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.chains.l1_client import L1Client
from src.collectors.records import TokenMetadata
from src.core.enums import MetadataState
from src.database.crud import backfill_token_metadata, get_token_metadata_by_l1_address
from src.utils.address import normalize_l1_address


class MetadataService:
    """
    Backfill token metadata from L1

    Keeps a process-local presence set: an address is added once metadata is
    known to be stored, and also while a fetch for it is running, so the
    same token is never fetched twice concurrently.
    """

    def __init__(self, l1_client: L1Client, session_maker: async_sessionmaker[AsyncSession]):
        self.l1_client = l1_client
        self.session_maker = session_maker
        self._present: Set[str] = set()

    async def ensure_token_metadata(self, l1_address: str) -> MetadataState:
        """
        Ensure metadata exists in DB for the given L1 address

        Returns:
            PRESENT if already stored (or being fetched), FETCHED if read
            from chain now, FAILED if the chain read or write failed
        """
        address = normalize_l1_address(l1_address)

        if address in self._present:
            return MetadataState.PRESENT

        # Mark as in progress before the first await: concurrent callers see PRESENT
        self._present.add(address)

        # DB pre-check
        try:
            existing = await self.get_token_metadata(address)
            if existing is not None:
                return MetadataState.PRESENT
        except Exception as e:
            logger.warning(f"Metadata DB pre-check failed for {address}: {e}")

        try:
            metadata = await self.l1_client.read_erc20_metadata(address)
            async with self.session_maker() as session:
                await backfill_token_metadata(session, address, metadata)

            logger.info(f"Fetched metadata for {address}: {metadata.symbol} ({metadata.decimals} decimals)")
            return MetadataState.FETCHED

        except Exception as e:
            logger.warning(f"ensure_token_metadata failed for {address}: {e}")
            # Allow future retries
            self._present.discard(address)
            return MetadataState.FAILED

    async def get_token_metadata(self, l1_address: str) -> Optional[TokenMetadata]:
        """Stored metadata, None unless symbol, name and decimals are all known"""
        async with self.session_maker() as session:
            return await get_token_metadata_by_l1_address(session, l1_address.lower())

    def has_cached(self, l1_address: str) -> bool:
        return l1_address.lower() in self._present
