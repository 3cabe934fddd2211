# coding: utf-8
"""
L1 (Ethereum) RPC client

Thin async wrapper over web3.py:
- Head height
- Event log queries for one event on one contract, decoded with the ABI
- Transaction sender lookup (receipt `from`)
- ERC20 metadata and portal view reads

Every request is bounded by the provider timeout; transport errors
propagate to the caller.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List

import aiohttp
from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3._utils.events import get_event_data

from src.chains.abi import (
    ERC20_METADATA_ABI,
    PORTAL_ALLOW_LIST_FUNCTION,
    event_signature,
)
from src.chains.base import LedgerClient
from src.chains.networks import get_chain_id
from src.collectors.records import TokenMetadata


@dataclass
class DecodedLog:
    """Event log decoded against its ABI, hashes as 0x-prefixed lower-case hex"""
    event: str
    address: str
    block_number: int
    transaction_hash: str
    log_index: int
    args: Dict[str, Any] = field(default_factory=dict)


def _to_hex(value: Any) -> str:
    if isinstance(value, str):
        return value.lower() if value.startswith("0x") else f"0x{value.lower()}"
    return Web3.to_hex(value)


def _normalize_arg(value: Any) -> Any:
    """bytes -> 0x hex, addresses lower-cased, everything else unchanged"""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    if isinstance(value, str) and value.startswith("0x"):
        return value.lower()
    return value


class L1Client(LedgerClient):
    """
    Async client for the L1 JSON-RPC endpoint

    Args:
        rpc_url: HTTP JSON-RPC endpoint
        network: Network name (mainnet / sepolia / sandbox / ...)
        timeout: Per-request timeout in seconds
    """

    name = "L1"

    def __init__(self, rpc_url: str, network: str = "", timeout: float = 30.0):
        self.rpc_url = rpc_url
        self.network = network
        self.chain_id = get_chain_id(network) if network else None
        self.w3 = AsyncWeb3(
            AsyncHTTPProvider(
                rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)},
            )
        )

    async def get_block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    async def verify_chain_id(self) -> bool:
        """
        Compare the node's chain id with the one expected for the network

        Returns:
            False (after a warning) on mismatch, True otherwise or when the
            network has no known chain id
        """
        if self.chain_id is None:
            return True

        node_chain_id = int(await self.w3.eth.chain_id)
        if node_chain_id != self.chain_id:
            logger.warning(
                f"L1 node chain id {node_chain_id} does not match network "
                f"{self.network} (expected {self.chain_id})"
            )
            return False
        return True

    async def get_logs(
        self,
        address: str,
        event_abi: dict,
        from_block: int,
        to_block: int,
    ) -> List[DecodedLog]:
        """
        Query and decode one event type emitted by one contract

        Args:
            address: Contract address
            event_abi: ABI entry of the event
            from_block: First block (inclusive)
            to_block: Last block (inclusive)

        Returns:
            Decoded logs in node order
        """
        topic = Web3.keccak(text=event_signature(event_abi))
        raw_logs = await self.w3.eth.get_logs({
            "address": Web3.to_checksum_address(address),
            "topics": [Web3.to_hex(topic)],
            "fromBlock": from_block,
            "toBlock": to_block,
        })

        decoded = []
        for raw in raw_logs:
            data = get_event_data(self.w3.codec, event_abi, raw)
            decoded.append(
                DecodedLog(
                    event=data["event"],
                    address=str(data["address"]).lower(),
                    block_number=int(data["blockNumber"]),
                    transaction_hash=_to_hex(data["transactionHash"]),
                    log_index=int(data["logIndex"]),
                    args={key: _normalize_arg(value) for key, value in data["args"].items()},
                )
            )

        logger.debug(
            f"L1 {event_abi['name']} logs {from_block}-{to_block} @ {address}: {len(decoded)}"
        )
        return decoded

    async def get_transaction_sender(self, tx_hash: str) -> str:
        """`from` of the transaction receipt, lower-cased"""
        receipt = await self.w3.eth.get_transaction_receipt(tx_hash)
        return str(receipt["from"]).lower()

    async def read_erc20_metadata(self, address: str) -> TokenMetadata:
        """Read name/symbol/decimals concurrently"""
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=ERC20_METADATA_ABI
        )
        name, symbol, decimals = await asyncio.gather(
            contract.functions.name().call(),
            contract.functions.symbol().call(),
            contract.functions.decimals().call(),
        )
        return TokenMetadata(symbol=symbol, name=name, decimals=int(decimals))

    async def read_allow_list_address(self, portal_address: str) -> str:
        """Allow-list contract configured on the L1 portal"""
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(portal_address),
            abi=[PORTAL_ALLOW_LIST_FUNCTION],
        )
        allow_list = await contract.functions.allowList().call()
        return str(allow_list).lower()

    async def close(self) -> None:
        disconnect = getattr(self.w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
