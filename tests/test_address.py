"""
Unit tests for address helpers and enums
"""

import pytest

from src.collectors.errors import InvalidAddressError
from src.core.enums import AllowListStatus
from src.utils.address import (
    field_to_hex,
    is_l1_address,
    is_l2_address,
    l1_address_from_field,
    normalize_l1_address,
    normalize_l2_address,
)


def test_normalize_l1_address_lowercases():
    """Checksummed input is stored lower-cased"""
    checksummed = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
    assert normalize_l1_address(checksummed) == checksummed.lower()


def test_normalize_l1_address_rejects_garbage():
    with pytest.raises(InvalidAddressError):
        normalize_l1_address("0x1234")

    # Still a ValueError for callers that do not know the subclass
    with pytest.raises(ValueError):
        normalize_l1_address("not-an-address")


def test_normalize_l2_address():
    address = "0x" + "AB" * 32
    assert normalize_l2_address(address) == "0x" + "ab" * 32

    with pytest.raises(InvalidAddressError):
        normalize_l2_address("0x" + "ab" * 20)


def test_is_address_predicates():
    assert is_l1_address("0x" + "11" * 20)
    assert not is_l1_address("0x" + "11" * 32)
    assert is_l2_address("0x" + "11" * 32)
    assert not is_l2_address("0x" + "11" * 20)
    assert not is_l2_address(None)


def test_l1_address_from_field():
    """Field element holding an L1 address is right-aligned"""
    field = "0x" + "00" * 12 + "ab" * 20
    assert l1_address_from_field(field) == "0x" + "ab" * 20
    assert l1_address_from_field(0x1) == "0x" + "0" * 39 + "1"

    with pytest.raises(InvalidAddressError):
        l1_address_from_field("0x" + "ff" * 32)


def test_field_to_hex_pads():
    assert field_to_hex("0x1") == "0x" + "0" * 63 + "1"
    assert field_to_hex(255) == "0x" + "0" * 62 + "ff"


def test_allow_list_status_from_number():
    assert AllowListStatus.from_number(1) == AllowListStatus.PROPOSED
    assert AllowListStatus.from_number(2) == AllowListStatus.ACCEPTED
    assert AllowListStatus.from_number(3) == AllowListStatus.REJECTED
    assert AllowListStatus.from_number(0) == AllowListStatus.UNKNOWN

    with pytest.raises(ValueError, match="Unknown allow list status number: 7"):
        AllowListStatus.from_number(7)


def test_allow_list_status_resolution():
    assert AllowListStatus.ACCEPTED.is_resolution
    assert AllowListStatus.REJECTED.is_resolution
    assert not AllowListStatus.PROPOSED.is_resolution
