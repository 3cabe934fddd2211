# coding: utf-8
"""
L2 collector

Scans the L2 portal for Register public logs and resolves each one to the
hash of the transaction that emitted it. Token contract instances are
recorded along the way; that bookkeeping never fails the scan.
"""

from typing import Dict, List

from loguru import logger

from src.chains.l2_client import AztecNodeClient, L2Block
from src.collectors.config import L2CollectorConfig
from src.collectors.errors import L2ConsistencyError
from src.collectors.l2_events import RegisterEvent, scan_for_register_events
from src.collectors.records import L2Registration
from src.services.contract_registry import ContractRegistryService
from src.services.metadata_service import MetadataService
from src.utils.address import normalize_l1_address, normalize_l2_address


class L2Collector:
    """
    Collect token registrations from the L2 portal

    Args:
        config: L2 portal address, Register selector, start block, chunk size
        node: Aztec node client
        metadata_service: Token metadata backfill (reads L1)
        contract_registry: Contract instance bookkeeping
    """

    def __init__(
        self,
        config: L2CollectorConfig,
        node: AztecNodeClient,
        metadata_service: MetadataService,
        contract_registry: ContractRegistryService,
    ):
        self.config = config
        self.node = node
        self.metadata_service = metadata_service
        self.contract_registry = contract_registry

    async def get_block_number(self) -> int:
        return await self.node.get_block_number()

    async def scan(self, from_block: int, to_block: int) -> List[L2Registration]:
        return await self.get_l2_token_registrations(from_block, to_block)

    async def get_l2_token_registrations(self, from_block: int, to_block: int) -> List[L2Registration]:
        """
        Register events in [from_block, to_block] as L2Registration records

        Raises:
            L2ConsistencyError: a block is missing or has no tx at the
                event's index
        """
        logger.debug(f"Scanning L2 blocks {from_block} to {to_block} for Register events")

        events = await scan_for_register_events(
            self.node,
            self.config.portal_address,
            from_block,
            to_block,
            self.config.register_event_selector,
        )

        if not events:
            logger.debug(f"No Register events found in L2 blocks {from_block}-{to_block}")
            return []

        blocks: Dict[int, L2Block] = {}
        registrations = []

        for event in events:
            tx_hash = await self._resolve_tx_hash(event, blocks)

            l1_address = normalize_l1_address(event.eth_token)
            l2_address = normalize_l2_address(event.aztec_token)
            logger.debug(
                f"Processing registration: L1={l1_address}, L2={l2_address}, "
                f"Block={event.block_number}, TxIndex={event.tx_index}"
            )

            await self._record_contract_instance(l1_address, l2_address)

            registrations.append(
                L2Registration(
                    l1_address=l1_address,
                    l2_address=l2_address,
                    block_number=event.block_number,
                    transaction_index=event.tx_index,
                    log_index=event.log_index,
                    transaction_hash=tx_hash,
                )
            )

        logger.debug(f"Found {len(registrations)} L2 token registration(s)")
        return registrations

    async def _resolve_tx_hash(self, event: RegisterEvent, blocks: Dict[int, L2Block]) -> str:
        block = blocks.get(event.block_number)
        if block is None:
            block = await self.node.get_block(event.block_number)
            if block is None:
                raise L2ConsistencyError(f"L2 Block {event.block_number} not found")
            blocks[event.block_number] = block

        if not 0 <= event.tx_index < len(block.tx_hashes):
            raise L2ConsistencyError(
                f"L2 Tx index {event.tx_index} not found in block {event.block_number}"
            )
        return block.tx_hashes[event.tx_index]

    async def _record_contract_instance(self, l1_address: str, l2_address: str) -> None:
        await self.metadata_service.ensure_token_metadata(l1_address)
        metadata = await self.metadata_service.get_token_metadata(l1_address)

        if metadata is None:
            logger.warning(
                f"Token metadata not available for {l1_address}, "
                f"skipping contract instance creation for {l2_address}"
            )
            return

        try:
            await self.contract_registry.store_token_instance(
                l2_address, self.config.portal_address, metadata
            )
        except Exception as e:
            # Registration is still returned
            logger.warning(
                f"Failed to store contract instance for token registration "
                f"L1={l1_address} L2={l2_address}: {e}"
            )
