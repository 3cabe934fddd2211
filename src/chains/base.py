"""
Ledger client interface

The collectors and the collector service only depend on this surface,
never on a concrete RPC library.
"""
from abc import ABC, abstractmethod


class LedgerClient(ABC):
    """A ledger the collector can poll."""

    name: str = "ledger"

    @abstractmethod
    async def get_block_number(self) -> int:
        """Current head height"""

    async def close(self) -> None:
        """Release transport resources (no-op by default)"""
