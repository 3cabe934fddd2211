"""
CRUD operations for the Turnstile collector

All writes are upserts keyed on the token's L1 address, so storing the same
record twice leaves the table unchanged.
"""

from datetime import datetime, UTC
from typing import Any, Dict, Iterable, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.collectors.records import (
    L1AllowListEvent,
    L1Registration,
    L2Registration,
    TokenMetadata,
)
from src.core.enums import Chain
from src.database.models import BlockProgress, ContractInstance, Token


# ===========================
# TOKEN OPERATIONS
# ===========================


async def get_token_by_l1_address(
    session: AsyncSession, l1_address: str
) -> Optional[Token]:
    """
    Get token row by L1 address

    Args:
        session: Database session
        l1_address: Lower-cased L1 token address

    Returns:
        Token or None
    """
    stmt = select(Token).where(Token.l1_address == l1_address)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_token_metadata_by_l1_address(
    session: AsyncSession, l1_address: str
) -> Optional[TokenMetadata]:
    """
    Get complete token metadata

    Returns:
        TokenMetadata if symbol, name and decimals are all stored, else None
    """
    token = await get_token_by_l1_address(session, l1_address)
    if token is None or not token.has_metadata:
        return None
    return TokenMetadata(symbol=token.symbol, name=token.name, decimals=token.decimals)


async def _upsert_token_fields(
    session: AsyncSession, l1_address: str, fields: Dict[str, Any]
) -> Token:
    """Create the token row if missing, then set the given columns (no commit)"""
    token = await get_token_by_l1_address(session, l1_address)
    if token is None:
        token = Token(l1_address=l1_address)
        session.add(token)

    for column, value in fields.items():
        setattr(token, column, value)
    token.updated_at = datetime.now(UTC)
    # Later records in the same batch may target this row
    await session.flush()
    return token


async def backfill_token_metadata(
    session: AsyncSession, l1_address: str, metadata: TokenMetadata
) -> Token:
    """
    Store metadata without overwriting values already present

    Args:
        session: Database session
        l1_address: Lower-cased L1 token address
        metadata: Metadata read from chain

    Returns:
        Updated Token
    """
    token = await get_token_by_l1_address(session, l1_address)
    if token is None:
        token = Token(l1_address=l1_address)
        session.add(token)

    # Set-if-null
    if token.symbol is None:
        token.symbol = metadata.symbol
    if token.name is None:
        token.name = metadata.name
    if token.decimals is None:
        token.decimals = metadata.decimals
    token.updated_at = datetime.now(UTC)

    await session.commit()
    await session.refresh(token)

    logger.debug(f"Backfilled metadata for {l1_address}: {token.symbol}")
    return token


async def store_l1_token_registrations(
    session: AsyncSession, registrations: Iterable[L1Registration]
) -> int:
    """
    Upsert L1 portal registrations

    Returns:
        Number of records stored
    """
    stored = 0
    for registration in registrations:
        if not registration.l1_address:
            logger.warning(f"Skipping L1 registration with no L1 address: {registration}")
            continue
        await _upsert_token_fields(
            session, registration.l1_address, registration.to_token_fields()
        )
        stored += 1

    if stored:
        await session.commit()
        logger.info(f"Stored {stored} L1 token registrations.")
    return stored


async def store_l1_token_allow_list_events(
    session: AsyncSession, events: Iterable[L1AllowListEvent]
) -> int:
    """
    Upsert allow-list transitions

    Only the fields carried by each transition are written, so a resolution
    never clears the proposal columns and vice versa. Events are applied in
    the order given.

    Returns:
        Number of records stored
    """
    stored = 0
    for event in events:
        if not event.l1_address:
            logger.warning(f"Skipping allowlist event with no L1 address: {event}")
            continue
        await _upsert_token_fields(session, event.l1_address, event.to_token_fields())
        stored += 1

    if stored:
        await session.commit()
        logger.info(f"Stored {stored} L1 token allowlist events.")
    return stored


async def store_l2_token_registrations(
    session: AsyncSession, registrations: Iterable[L2Registration]
) -> int:
    """
    Upsert L2 portal registrations

    Safe to call repeatedly with the same records (the L2 scan re-reads its
    last block every cycle).

    Returns:
        Number of records stored
    """
    stored = 0
    for registration in registrations:
        if not registration.l1_address:
            logger.warning(f"Skipping L2 registration with no L1 address: {registration}")
            continue
        await _upsert_token_fields(
            session, registration.l1_address, registration.to_token_fields()
        )
        stored += 1

    if stored:
        await session.commit()
        logger.info(f"Stored {stored} L2 token registrations.")
    return stored


# ===========================
# BLOCK PROGRESS OPERATIONS
# ===========================


async def get_block_progress(
    session: AsyncSession, chain: Chain
) -> Optional[BlockProgress]:
    """
    Get block progress row for a chain

    Args:
        session: Database session
        chain: Chain.L1 or Chain.L2

    Returns:
        BlockProgress or None
    """
    stmt = select(BlockProgress).where(BlockProgress.chain == Chain(chain).value)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def upsert_block_progress(
    session: AsyncSession, chain: Chain, block_number: int
) -> BlockProgress:
    """
    Set last scanned block for a chain (insert on first use)

    Args:
        session: Database session
        chain: Chain.L1 or Chain.L2
        block_number: Highest fully processed block

    Returns:
        Updated BlockProgress
    """
    now = datetime.now(UTC)
    progress = await get_block_progress(session, chain)

    if progress is None:
        progress = BlockProgress(
            chain=Chain(chain).value,
            last_scanned_block=block_number,
            last_scan_timestamp=now,
        )
        session.add(progress)
    else:
        progress.last_scanned_block = block_number
        progress.last_scan_timestamp = now
        progress.updated_at = now

    await session.commit()
    await session.refresh(progress)
    return progress


# ===========================
# CONTRACT INSTANCE OPERATIONS
# ===========================


async def upsert_contract_instance(
    session: AsyncSession,
    address: str,
    portal_address: Optional[str],
    deployment_params: Optional[dict],
) -> ContractInstance:
    """
    Store an L2 contract instance keyed on its address

    Returns:
        Created or updated ContractInstance
    """
    stmt = select(ContractInstance).where(ContractInstance.address == address)
    result = await session.execute(stmt)
    instance = result.scalar_one_or_none()

    if instance is None:
        instance = ContractInstance(
            address=address,
            portal_address=portal_address,
            deployment_params=deployment_params,
        )
        session.add(instance)
    else:
        instance.portal_address = portal_address
        instance.deployment_params = deployment_params
        instance.updated_at = datetime.now(UTC)

    await session.commit()
    await session.refresh(instance)

    logger.info(f"Stored contract instance at address: {address}")
    return instance


async def get_contract_instance_by_address(
    session: AsyncSession, address: str
) -> Optional[ContractInstance]:
    """Get contract instance by L2 address"""
    stmt = select(ContractInstance).where(ContractInstance.address == address)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
