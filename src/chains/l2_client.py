# coding: utf-8
"""
L2 (Aztec) node client

JSON-RPC over HTTP with aiohttp:
- node_getBlockNumber - head height
- node_getBlock - block with its ordered tx effects
- node_getPublicLogs - public logs of a contract in a block range
- node_getL1ContractAddresses - rollup contracts on L1 (inbox)

Transient transport errors are retried a few times; JSON-RPC errors and
anything left after the retries propagate.
"""
import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import aiohttp
from loguru import logger
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from src.chains.base import LedgerClient
from src.collectors.errors import AztecNodeError


# Create standard logger for tenacity
std_logger = logging.getLogger(__name__)


@dataclass
class L2Block:
    """Block number and the hashes of its tx effects, in block order"""
    number: int
    tx_hashes: List[str] = field(default_factory=list)


@dataclass
class PublicLog:
    """Public log as returned by the node, fields as 0x hex strings"""
    block_number: int
    tx_index: int
    log_index: int
    contract_address: str
    fields: List[str] = field(default_factory=list)


def _as_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


def _parse_block(number: int, payload: Dict[str, Any]) -> L2Block:
    body = payload.get("body") or {}
    tx_effects = body.get("txEffects") or []
    return L2Block(
        number=number,
        tx_hashes=[str(effect["txHash"]).lower() for effect in tx_effects],
    )


def _parse_public_log(entry: Dict[str, Any]) -> PublicLog:
    log_id = entry["id"]
    log = entry["log"]
    fields = [str(item) for item in log.get("fields", [])]
    emitted_length = log.get("emittedLength")
    if emitted_length is not None:
        # Fields are zero-padded to a fixed size
        fields = fields[: _as_int(emitted_length)]
    return PublicLog(
        block_number=_as_int(log_id["blockNumber"]),
        tx_index=_as_int(log_id["txIndex"]),
        log_index=_as_int(log_id["logIndex"]),
        contract_address=str(log.get("contractAddress", "")).lower(),
        fields=fields,
    )


class AztecNodeClient(LedgerClient):
    """
    Async client for an Aztec node

    Args:
        node_url: Node JSON-RPC URL
        timeout: Per-request timeout in seconds
    """

    name = "L2"

    def __init__(self, node_url: str, timeout: float = 30.0):
        self.node_url = node_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._ids = itertools.count(1)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    @retry(
        retry=retry_if_exception_type((aiohttp.ClientError, asyncio.TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        before_sleep=before_sleep_log(std_logger, logging.WARNING),
        reraise=True,
    )
    async def _call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Make a JSON-RPC call, retrying transport errors up to 3 times

        Raises:
            AztecNodeError: the node answered with an error payload
            aiohttp.ClientError / asyncio.TimeoutError: after the retries
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        session = await self._get_session()
        async with session.post(self.node_url, json=payload) as response:
            response.raise_for_status()
            data = await response.json(content_type=None)

        if data.get("error"):
            error = data["error"]
            raise AztecNodeError(method, error.get("code"), error.get("message", str(error)))

        return data.get("result")

    async def get_block_number(self) -> int:
        return _as_int(await self._call("node_getBlockNumber"))

    async def get_block(self, block_number: int) -> Optional[L2Block]:
        """
        Returns:
            L2Block or None if the node does not know the block
        """
        result = await self._call("node_getBlock", [block_number])
        if not result:
            return None
        return _parse_block(block_number, result)

    async def get_public_logs(
        self, contract_address: str, from_block: int, to_block: int
    ) -> List[PublicLog]:
        """
        Public logs emitted by a contract in [from_block, to_block]

        The node's toBlock is exclusive and responses are capped; pages are
        followed with afterLog until the node stops reporting maxLogsHit.
        """
        log_filter: Dict[str, Any] = {
            "fromBlock": from_block,
            "toBlock": to_block + 1,
            "contractAddress": contract_address,
        }

        logs: List[PublicLog] = []
        while True:
            logger.debug(f"node_getPublicLogs filter: {log_filter}")
            result = await self._call("node_getPublicLogs", [log_filter]) or {}
            entries = result.get("logs") or []
            logs.extend(_parse_public_log(entry) for entry in entries)

            if not result.get("maxLogsHit") or not entries:
                break
            log_filter = {**log_filter, "afterLog": entries[-1]["id"]}

        logger.debug(f"Aztec node returned {len(logs)} total logs for {contract_address}")
        return logs

    async def get_l1_contract_addresses(self) -> Dict[str, str]:
        result = await self._call("node_getL1ContractAddresses") or {}
        return {key: str(value).lower() for key, value in result.items()}

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
