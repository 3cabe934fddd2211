# coding: utf-8
"""
Collector service - the poll loop

Each poll() computes one bounded block range per chain from the stored
progress, scans it, stores the records and only then advances progress.

Range rules:
- L1 resumes at last + 1 (a scanned L1 block is final)
- L2 resumes at last, re-reading its last block every cycle since L2 logs
  can surface after the block itself; L2 storage is therefore at-least-once
- A forced start block is used by exactly one cycle and enables backfill
  mode: start() returns once both chains are caught up
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.sentry import add_breadcrumb
from src.collectors.config import CollectorConfig
from src.collectors.l1_collector import L1Collector
from src.collectors.l2_collector import L2Collector
from src.core.enums import Chain
from src.database.crud import (
    store_l1_token_allow_list_events,
    store_l1_token_registrations,
    store_l2_token_registrations,
)
from src.services.block_progress import BlockProgressService


@dataclass
class ScanRange:
    """Block range of one chain for one cycle"""
    from_block: int
    to_block: int
    current_block: int

    @property
    def caught_up(self) -> bool:
        return self.from_block > self.current_block


def compute_range(from_block: int, chunk_size: int, current_block: int) -> ScanRange:
    """Clamp [from_block, from_block + chunk_size - 1] to the chain head"""
    to_block = min(from_block + chunk_size - 1, current_block)
    return ScanRange(from_block=from_block, to_block=to_block, current_block=current_block)


class CollectorService:
    """
    Drive the L1 and L2 collectors

    Args:
        config: Collector configuration (start blocks, chunk sizes,
            polling interval, one-shot start block overrides)
        l1_collector: L1 scanner
        l2_collector: L2 scanner
        block_progress: Scan checkpoint store
        session_maker: Session factory for record storage
    """

    def __init__(
        self,
        config: CollectorConfig,
        l1_collector: L1Collector,
        l2_collector: L2Collector,
        block_progress: BlockProgressService,
        session_maker: async_sessionmaker[AsyncSession],
    ):
        self.config = config
        self.l1_collector = l1_collector
        self.l2_collector = l2_collector
        self.block_progress = block_progress
        self.session_maker = session_maker
        self.polling_interval = config.polling_interval_ms / 1000

        self._force_l1_start_block: Optional[int] = config.force_l1_start_block
        self._force_l2_start_block: Optional[int] = config.force_l2_start_block
        self.is_backfill_mode = config.is_backfill

        if self._force_l1_start_block is not None:
            logger.info(f"Backfill mode enabled for L1: forcing start from block {self._force_l1_start_block}")
        if self._force_l2_start_block is not None:
            logger.info(f"Backfill mode enabled for L2: forcing start from block {self._force_l2_start_block}")
        if self.is_backfill_mode:
            logger.info("Running in backfill mode - will exit when caught up with blockchain")

    # ===== START BLOCKS =====

    def _next_l1_block(self, last_scanned: int) -> int:
        if self._force_l1_start_block is not None:
            from_block = self._force_l1_start_block
            self._force_l1_start_block = None
            logger.info(f"Using forced L1 start block: {from_block}")
            return from_block

        if last_scanned == 0 and self.config.l1.start_block:
            return self.config.l1.start_block
        return last_scanned + 1

    def _next_l2_block(self, last_scanned: int) -> int:
        if self._force_l2_start_block is not None:
            from_block = self._force_l2_start_block
            self._force_l2_start_block = None
            logger.info(f"Using forced L2 start block: {from_block}")
            return from_block

        if last_scanned == 0:
            return self.config.l2.start_block or 1
        # Re-scan the last block
        return last_scanned

    # ===== POLL =====

    async def poll(self) -> bool:
        """
        Run one collection cycle

        Returns:
            True if both chains are caught up with their head

        Raises:
            Any RPC, storage or L2 consistency error; nothing is swallowed
        """
        logger.debug("Polling for new data...")

        last_l1, last_l2 = await asyncio.gather(
            self.block_progress.get_last_scanned_block(Chain.L1),
            self.block_progress.get_last_scanned_block(Chain.L2),
        )

        from_l1 = self._next_l1_block(last_l1)
        from_l2 = self._next_l2_block(last_l2)

        current_l1, current_l2 = await asyncio.gather(
            self.l1_collector.get_block_number(),
            self.l2_collector.get_block_number(),
        )

        l1_range = compute_range(from_l1, self.config.l1.chunk_size, current_l1)
        l2_range = compute_range(from_l2, self.config.l2.chunk_size, current_l2)

        l1_caught_up = l1_range.caught_up
        l2_caught_up = l2_range.caught_up

        if l1_caught_up and l2_caught_up:
            logger.debug(f"Already caught up - L1: {current_l1}, L2: {current_l2}")
            return True

        # Ledgers scanned one after the other: a failed cycle leaves no scan running
        if not l1_caught_up:
            l1_caught_up = await self._poll_l1(l1_range)

        if not l2_caught_up:
            rescanning = from_l2 == last_l2 and last_l2 > 0
            l2_caught_up = await self._poll_l2(l2_range, rescanning)

        logger.debug(f"Polling complete. L1 caught up: {l1_caught_up}, L2 caught up: {l2_caught_up}")
        return l1_caught_up and l2_caught_up

    async def _poll_l1(self, scan_range: ScanRange) -> bool:
        logger.info(
            f"Scanning L1 blocks {scan_range.from_block} to {scan_range.to_block} "
            f"(current: {scan_range.current_block})"
        )
        add_breadcrumb("L1 scan", category="l1", from_block=scan_range.from_block, to_block=scan_range.to_block)
        result = await self.l1_collector.scan(scan_range.from_block, scan_range.to_block)

        async with self.session_maker() as session:
            # Proposals and resolutions first, then the fuller registration data
            if result.allow_list_events:
                logger.info(f"Found {len(result.allow_list_events)} L1 token allowlist events")
                await store_l1_token_allow_list_events(session, result.allow_list_events)

            if result.registrations:
                logger.info(f"Found {len(result.registrations)} L1 token registrations")
                await store_l1_token_registrations(session, result.registrations)

        await self.block_progress.update_last_scanned_block(Chain.L1, scan_range.to_block)
        return scan_range.to_block >= scan_range.current_block

    async def _poll_l2(self, scan_range: ScanRange, rescanning: bool) -> bool:
        logger.info(
            f"Scanning L2 blocks {scan_range.from_block} to {scan_range.to_block} "
            f"(current: {scan_range.current_block})"
        )
        add_breadcrumb("L2 scan", category="l2", from_block=scan_range.from_block, to_block=scan_range.to_block)
        registrations = await self.l2_collector.scan(scan_range.from_block, scan_range.to_block)

        if registrations:
            if rescanning:
                logger.warning(
                    f"Found {len(registrations)} L2 token registrations on RESCAN of block {scan_range.from_block}"
                )
            else:
                logger.info(f"Found {len(registrations)} L2 token registrations")

            async with self.session_maker() as session:
                await store_l2_token_registrations(session, registrations)

        await self.block_progress.update_last_scanned_block(Chain.L2, scan_range.to_block)
        return scan_range.to_block >= scan_range.current_block

    # ===== LOOP =====

    async def start(self) -> None:
        """
        Poll forever

        Sleeps the polling interval when caught up or after a failed cycle,
        re-polls immediately while catching up. Returns only in backfill mode,
        once both chains are caught up.
        """
        logger.info("Starting CollectorService...")

        while True:
            try:
                caught_up = await self.poll()

                if self.is_backfill_mode and caught_up:
                    logger.info("Backfill complete - caught up with blockchain. Exiting.")
                    return

                if caught_up:
                    logger.info(
                        f"Caught up with both chains. Waiting {self.config.polling_interval_ms}ms before next poll..."
                    )
                    await asyncio.sleep(self.polling_interval)
                else:
                    logger.info("Still catching up, polling again immediately...")

            except Exception as e:
                logger.exception(f"CollectorService encountered an error: {e}")
                # Fixed interval, no backoff
                await asyncio.sleep(self.polling_interval)
