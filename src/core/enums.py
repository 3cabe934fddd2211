"""
Core Enums - shared types for the whole collector stack.

Defines:
- Chain: which ledger a scan pointer belongs to
- AllowListStatus: on-chain allow-list lifecycle of an L1 token
- MetadataState: outcome of a token metadata backfill attempt
"""

from enum import Enum


class Chain(str, Enum):
    """Ledger identifier used as the block progress key."""

    L1 = "L1"  # Settlement chain (Ethereum)
    L2 = "L2"  # Rollup receiving bridged tokens (Aztec)


class AllowListStatus(str, Enum):
    """Allow-list status of a token.

    The contract only exposes the numeric enum value, so the mapping
    lives here:
    0 = UNKNOWN, 1 = PROPOSED, 2 = ACCEPTED, 3 = REJECTED
    """

    UNKNOWN = "UNKNOWN"
    PROPOSED = "PROPOSED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"

    @classmethod
    def from_number(cls, status: int) -> "AllowListStatus":
        """Convert the on-chain uint8 status into the enum."""
        try:
            return _STATUS_BY_NUMBER[int(status)]
        except KeyError:
            raise ValueError(f"Unknown allow list status number: {status}") from None

    @property
    def is_resolution(self) -> bool:
        """ACCEPTED/REJECTED close a proposal."""
        return self in (AllowListStatus.ACCEPTED, AllowListStatus.REJECTED)


_STATUS_BY_NUMBER = {
    0: AllowListStatus.UNKNOWN,
    1: AllowListStatus.PROPOSED,
    2: AllowListStatus.ACCEPTED,
    3: AllowListStatus.REJECTED,
}


class MetadataState(str, Enum):
    """Result of MetadataService.ensure_token_metadata."""

    PRESENT = "present"  # Already stored (or being fetched by this process)
    FETCHED = "fetched"  # Read from chain and backfilled just now
    FAILED = "failed"  # Chain read failed, will be retried next time
