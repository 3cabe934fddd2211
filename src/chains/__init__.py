"""RPC clients for the bridged ledgers"""
from .base import LedgerClient
from .l1_client import L1Client, DecodedLog
from .l2_client import AztecNodeClient, L2Block, PublicLog

__all__ = [
    'LedgerClient',
    'L1Client',
    'DecodedLog',
    'AztecNodeClient',
    'L2Block',
    'PublicLog',
]
