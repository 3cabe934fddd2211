# coding: utf-8
"""
L1 collector

Scans the L1 portal, inbox and allow-list contracts for token bridge events:
- Registered (portal) + MessageSent (inbox), joined on transaction hash
- StatusUpdated (allow-list) transitions

Every range query is issued concurrently; RPC failures propagate so the poll
cycle fails as a whole.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from loguru import logger

from src.chains.abi import MESSAGE_SENT_EVENT, REGISTERED_EVENT, STATUS_UPDATED_EVENT
from src.chains.l1_client import DecodedLog, L1Client
from src.collectors.config import L1CollectorConfig
from src.collectors.correlation import CorrelatedRegistration, correlate_registrations
from src.collectors.records import L1AllowListEvent, L1Registration
from src.core.enums import AllowListStatus
from src.services.metadata_service import MetadataService
from src.utils.address import normalize_l1_address


@dataclass
class L1ScanResult:
    registrations: List[L1Registration] = field(default_factory=list)
    allow_list_events: List[L1AllowListEvent] = field(default_factory=list)


def _optional_int(value) -> Optional[int]:
    return int(value) if value is not None else None


class _SenderCache:
    """Receipt `from` lookups, one request per transaction"""

    def __init__(self, client: L1Client):
        self.client = client
        self._senders: Dict[str, str] = {}

    async def get(self, tx_hash: str) -> str:
        key = tx_hash.lower()
        if key not in self._senders:
            self._senders[key] = await self.client.get_transaction_sender(tx_hash)
        return self._senders[key]


class L1Collector:
    """
    Collect token registrations and allow-list transitions from L1

    Args:
        config: L1 contract addresses, start block and chunk size
        client: L1 RPC client
        metadata_service: Token metadata backfill
    """

    def __init__(
        self,
        config: L1CollectorConfig,
        client: L1Client,
        metadata_service: MetadataService,
    ):
        self.config = config
        self.client = client
        self.metadata_service = metadata_service

    async def get_block_number(self) -> int:
        return await self.client.get_block_number()

    async def scan(self, from_block: int, to_block: int) -> L1ScanResult:
        """Registrations and allow-list events in [from_block, to_block]"""
        registrations, allow_list_events = await asyncio.gather(
            self.get_l1_token_registrations(from_block, to_block),
            self.get_l1_token_allow_list_events(from_block, to_block),
        )
        return L1ScanResult(registrations=registrations, allow_list_events=allow_list_events)

    async def get_l1_token_registrations(self, from_block: int, to_block: int) -> List[L1Registration]:
        """
        Portal registrations joined with their inbox message

        A Registered log whose MessageSent is not in the same range is
        dropped with a warning and not retried.
        """
        logger.debug(f"Scanning L1 blocks {from_block} to {to_block} for Registered events")

        portal_logs, inbox_logs = await asyncio.gather(
            self.client.get_logs(self.config.portal_address, REGISTERED_EVENT, from_block, to_block),
            self.client.get_logs(self.config.inbox_address, MESSAGE_SENT_EVENT, from_block, to_block),
        )

        correlation = correlate_registrations(portal_logs, inbox_logs)
        for unmatched in correlation.unmatched:
            logger.warning(
                f"No correlated inbox log found for portal registration in tx {unmatched.transaction_hash}"
            )

        senders = _SenderCache(self.client)
        seen_tokens = set()
        registrations = []

        for pair in correlation.matched:
            token = pair.registered.args.get("token")
            if not token:
                logger.warning(f"Skipping Registered log without token in tx {pair.registered.transaction_hash}")
                continue

            l1_address = normalize_l1_address(token)
            if l1_address not in seen_tokens:
                seen_tokens.add(l1_address)
                await self.metadata_service.ensure_token_metadata(l1_address)

            registrations.append(await self._build_registration(l1_address, pair, senders))

        if registrations:
            logger.info(f"Found {len(registrations)} L1 token registration(s) in blocks {from_block}-{to_block}")
        return registrations

    async def _build_registration(
        self, l1_address: str, pair: CorrelatedRegistration, senders: _SenderCache
    ) -> L1Registration:
        registered = pair.registered
        message = pair.message_sent.args

        message_hash = message.get("hash") or registered.args.get("leaf")
        message_index = message.get("index")
        if message_index is None:
            message_index = registered.args.get("index")

        return L1Registration(
            l1_address=l1_address,
            block_number=registered.block_number,
            transaction_hash=registered.transaction_hash,
            submitter_address=await senders.get(registered.transaction_hash),
            l1_to_l2_message_hash=message_hash.lower() if message_hash else None,
            l1_to_l2_message_index=_optional_int(message_index),
            l2_available_block=_optional_int(message.get("l2BlockNumber")),
        )

    async def get_l1_token_allow_list_events(
        self, from_block: int, to_block: int
    ) -> List[L1AllowListEvent]:
        """
        StatusUpdated transitions, in log order

        Proposals carry the proposer, resolutions (accepted / rejected) the
        approver; both are the sender of the emitting transaction.
        """
        logger.debug(f"Scanning L1 blocks {from_block} to {to_block} for StatusUpdated events")

        logs = await self.client.get_logs(
            self.config.allow_list_address, STATUS_UPDATED_EVENT, from_block, to_block
        )

        senders = _SenderCache(self.client)
        events = []

        for log in logs:
            if not log.args.get("addr") or not log.args.get("status"):
                logger.warning(
                    f"Skipping invalid allowList StatusUpdated log in tx {log.transaction_hash}: {log.args}"
                )
                continue

            events.append(await self._build_allow_list_event(log, senders))

        if events:
            logger.info(f"Found {len(events)} L1 allowlist event(s) in blocks {from_block}-{to_block}")
        return events

    async def _build_allow_list_event(self, log: DecodedLog, senders: _SenderCache) -> L1AllowListEvent:
        status = AllowListStatus.from_number(int(log.args["status"]))
        l1_address = normalize_l1_address(log.args["addr"])
        sender = await senders.get(log.transaction_hash)

        if status.is_resolution:
            return L1AllowListEvent(
                l1_address=l1_address,
                status=status,
                resolution_tx=log.transaction_hash,
                approver_address=sender,
            )

        # Resolved tokens already got their metadata at the proposal
        await self.metadata_service.ensure_token_metadata(l1_address)
        return L1AllowListEvent(
            l1_address=l1_address,
            status=status,
            proposal_tx=log.transaction_hash,
            proposer_address=sender,
        )
