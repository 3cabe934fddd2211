"""
Records produced by the L1/L2 collectors

Plain dataclasses: the collectors build them, crud.py maps them onto the
`tokens` table. Addresses are always lower-cased by the time a record is
built.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from src.core.enums import AllowListStatus


@dataclass(frozen=True)
class TokenMetadata:
    """ERC20 metadata, backfilled from L1."""
    symbol: str
    name: str
    decimals: int


@dataclass(frozen=True)
class L1Registration:
    """Registered (portal) + MessageSent (inbox) from the same L1 transaction."""
    l1_address: str
    block_number: int
    transaction_hash: str
    submitter_address: Optional[str]
    l1_to_l2_message_hash: Optional[str]
    l1_to_l2_message_index: Optional[int]
    l2_available_block: Optional[int]

    def to_token_fields(self) -> Dict[str, Any]:
        return {
            "l1_registration_block": self.block_number,
            "l1_registration_tx": self.transaction_hash,
            "l1_registration_submitter": self.submitter_address,
            "l1_to_l2_message_hash": self.l1_to_l2_message_hash,
            "l1_to_l2_message_index": self.l1_to_l2_message_index,
            "l2_registration_available_block": self.l2_available_block,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class L1AllowListEvent:
    """
    One allow-list status transition.

    A proposal carries proposal_tx/proposer_address, a resolution carries
    resolution_tx/approver_address. The two field sets never overlap.
    """
    l1_address: str
    status: AllowListStatus
    proposal_tx: Optional[str] = None
    proposer_address: Optional[str] = None
    resolution_tx: Optional[str] = None
    approver_address: Optional[str] = None

    def to_token_fields(self) -> Dict[str, Any]:
        fields = {
            "l1_allow_list_status": self.status.value,
            "l1_allow_list_proposal_tx": self.proposal_tx,
            "l1_allow_list_proposer": self.proposer_address,
            "l1_allow_list_resolution_tx": self.resolution_tx,
            "l1_allow_list_approver": self.approver_address,
        }
        # Only what this transition knows about
        return {key: value for key, value in fields.items() if value is not None}

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass(frozen=True)
class L2Registration:
    """Register event from the L2 portal, resolved to its transaction hash."""
    l1_address: str
    l2_address: str
    block_number: int
    transaction_index: int
    log_index: int
    transaction_hash: str

    def to_token_fields(self) -> Dict[str, Any]:
        return {
            "l2_address": self.l2_address,
            "l2_registration_block": self.block_number,
            "l2_registration_tx_index": self.transaction_index,
            "l2_registration_log_index": self.log_index,
            "l2_registration_tx": self.transaction_hash,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
