"""
Network name -> L1 chain id
"""
from typing import Optional

from loguru import logger

CHAIN_IDS = {
    "mainnet": 1,
    "sepolia": 11155111,
    "testnet": 11155111,
    "sandbox": 31337,  # anvil
}


def get_chain_id(network: str) -> Optional[int]:
    """
    Resolve the L1 chain id for a network name

    Unknown networks are allowed (custom deployments), the chain id is then
    left to the node.
    """
    chain_id = CHAIN_IDS.get(network)
    if chain_id is None:
        logger.warning(f'Unknown network "{network}", using undefined chain id')
    return chain_id
