"""
Core module - base types and enums for the whole stack.
"""

from src.core.enums import (
    Chain,
    AllowListStatus,
    MetadataState,
)

__all__ = [
    "Chain",
    "AllowListStatus",
    "MetadataState",
]
