"""
Database models for the Turnstile collector

SQLAlchemy 2.0 models with full type hints
"""

from datetime import datetime, UTC
from typing import Optional

from sqlalchemy import (
    String,
    BigInteger,
    Integer,
    SmallInteger,
    DateTime,
    JSON,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.enums import Chain


class Base(DeclarativeBase):
    """Base class for all models"""

    pass


# ===========================
# MODELS
# ===========================


class Token(Base):
    """
    Bridged token - one row per L1 token address

    Tracks:
    - Token metadata (symbol/name/decimals), backfilled from L1
    - L1 allow-list lifecycle (proposal and resolution)
    - L1 portal registration and the L1->L2 message it emitted
    - L2 portal registration

    Every column except l1_address is nullable: the L1 registration, the
    allow-list events and the L2 registration are discovered independently
    and in any order.
    """

    __tablename__ = "tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Token metadata
    symbol: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    decimals: Mapped[Optional[int]] = mapped_column(SmallInteger, nullable=True)

    # 0x + 40 hex chars, lower-case
    l1_address: Mapped[Optional[str]] = mapped_column(
        String(42), unique=True, index=True, nullable=True, comment="L1 token address"
    )
    # 0x + 64 hex chars, lower-case
    l2_address: Mapped[Optional[str]] = mapped_column(
        String(66), unique=True, nullable=True, comment="L2 token address"
    )

    # Allow-list tracking
    l1_allow_list_status: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, comment="UNKNOWN / PROPOSED / ACCEPTED / REJECTED"
    )
    l1_allow_list_proposal_tx: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)
    l1_allow_list_proposer: Mapped[Optional[str]] = mapped_column(String(42), nullable=True)
    l1_allow_list_approver: Mapped[Optional[str]] = mapped_column(String(42), nullable=True)
    l1_allow_list_resolution_tx: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)

    # L1 portal registration
    l1_registration_submitter: Mapped[Optional[str]] = mapped_column(String(42), nullable=True)
    l1_registration_block: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    l1_registration_tx: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)
    l1_to_l2_message_hash: Mapped[Optional[str]] = mapped_column(
        String(66), unique=True, nullable=True, comment="Leaf of the L1->L2 registration message"
    )
    l1_to_l2_message_index: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    l2_registration_available_block: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True, comment="First L2 block that can consume the message"
    )

    # L2 portal registration
    l2_registration_block: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    l2_registration_tx: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)
    l2_registration_tx_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l2_registration_log_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l2_registration_submitter: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)
    l2_registration_fee_payer: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def has_metadata(self) -> bool:
        """Symbol, name and decimals are all known"""
        return self.symbol is not None and self.name is not None and self.decimals is not None

    def __repr__(self) -> str:
        return f"<Token(l1_address={self.l1_address}, symbol={self.symbol}, l2_address={self.l2_address})>"


# Token indexes:
# - tokens.l1_address (unique index)
# - tokens.l2_address (unique)
# - tokens.l1_to_l2_message_hash (unique)


class BlockProgress(Base):
    """
    Block progress model - last scanned block per ledger

    One row per chain (L1 / L2). The collector resumes from here after a
    restart.
    """

    __tablename__ = "block_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    chain: Mapped[str] = mapped_column(
        String(10),
        unique=True,
        nullable=False,
        default=Chain.L1.value,
        comment="L1 or L2",
    )

    last_scanned_block: Mapped[int] = mapped_column(
        BigInteger,
        default=0,
        nullable=False,
        comment="Highest block fully processed by the collector",
    )

    last_scan_timestamp: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<BlockProgress(chain={self.chain}, last_scanned_block={self.last_scanned_block})>"


class ContractInstance(Base):
    """
    L2 token contract instance discovered through a portal registration

    Stores what is needed to re-derive the instance: the token's
    constructor arguments (name/symbol/decimals/portal).
    """

    __tablename__ = "contract_instances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    address: Mapped[str] = mapped_column(
        String(66), unique=True, index=True, nullable=False, comment="L2 contract address"
    )
    portal_address: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)
    deployment_params: Mapped[Optional[dict]] = mapped_column(
        JSON, nullable=True, comment="Constructor arguments used for the instance"
    )
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ContractInstance(address={self.address[:18]}..., version={self.version})>"


# ContractInstance indexes:
# - contract_instances.address (unique index)
