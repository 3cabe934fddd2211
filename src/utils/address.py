"""
Address normalization helpers

Every address written by the collector is lower-cased so storage upserts
key correctly regardless of the casing an RPC node returns.
"""

import re

from web3 import Web3

from src.collectors.errors import InvalidAddressError

_L2_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def is_l1_address(address: str) -> bool:
    """20-byte hex address; mixed case must be a valid checksum"""
    return isinstance(address, str) and Web3.is_address(address)


def is_l2_address(address: str) -> bool:
    """32-byte field element rendered as 0x + 64 hex chars"""
    return isinstance(address, str) and bool(_L2_ADDRESS_RE.match(address))


def normalize_l1_address(address: str) -> str:
    if not is_l1_address(address):
        raise InvalidAddressError(f"Invalid L1 address: {address}")
    return address.lower()


def normalize_l2_address(address: str) -> str:
    if not is_l2_address(address):
        raise InvalidAddressError(f"Invalid L2 address: {address}")
    return address.lower()


def l1_address_from_field(value: str | int) -> str:
    """
    Convert an L2 field element holding an L1 address into 0x + 40 hex

    The L2 portal emits the L1 token as a field (right-aligned 20 bytes).
    """
    as_int = int(value, 16) if isinstance(value, str) else int(value)
    if as_int >> 160:
        raise InvalidAddressError(f"Field does not fit an L1 address: {value}")
    return f"0x{as_int:040x}"


def field_to_hex(value: str | int) -> str:
    """Render a field element as 0x + 64 hex chars"""
    as_int = int(value, 16) if isinstance(value, str) else int(value)
    return f"0x{as_int:064x}"
