# coding: utf-8
"""
Contract registry service

Records the L2 token contract instance created by a portal registration:
the constructor arguments go to the contract_instances table and, when an
artifacts service is configured, are uploaded there as well.
"""

from typing import Any, Dict, Optional

import aiohttp
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.collectors.records import TokenMetadata
from src.database.crud import upsert_contract_instance
from src.utils.address import normalize_l2_address

TOKEN_CONSTRUCTOR_NAME = "constructor_with_minter"
ZERO_L2_ADDRESS = "0x" + "0" * 64


class ContractRegistryService:
    """
    Store token contract instances

    Args:
        session_maker: Database session factory
        artifacts_api_url: Optional artifacts service base URL
        timeout: HTTP timeout in seconds
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        artifacts_api_url: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.session_maker = session_maker
        self.artifacts_api_url = (artifacts_api_url or "").rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)

        if self.artifacts_api_url:
            logger.info(f"Using contract artifacts API at {self.artifacts_api_url}")

    @staticmethod
    def build_deployment_params(portal_address: str, metadata: TokenMetadata) -> Dict[str, Any]:
        """Constructor arguments the token was deployed with"""
        return {
            "constructorName": TOKEN_CONSTRUCTOR_NAME,
            "constructorArgs": {
                "name": metadata.name,
                "symbol": metadata.symbol,
                "decimals": metadata.decimals,
                "minter": portal_address,
                "upgradeAuthority": ZERO_L2_ADDRESS,
            },
            "deployer": ZERO_L2_ADDRESS,
        }

    async def store_token_instance(
        self, token_address: str, portal_address: str, metadata: TokenMetadata
    ) -> None:
        """
        Store a token contract instance

        Raises:
            Any storage or upload error, after logging it
        """
        address = normalize_l2_address(token_address)
        portal = normalize_l2_address(portal_address)
        params = self.build_deployment_params(portal, metadata)

        try:
            async with self.session_maker() as session:
                await upsert_contract_instance(session, address, portal, params)

            if self.artifacts_api_url:
                await self._upload_instance(address, params)

            logger.info(f"Stored contract instance for token {address}")

        except Exception as e:
            logger.error(f"Failed to store token contract instance {address} (portal {portal}): {e}")
            raise

    async def _upload_instance(self, address: str, params: Dict[str, Any]) -> None:
        url = f"{self.artifacts_api_url}/contract-instances"
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(url, json={"address": address, "initializationData": params}) as response:
                response.raise_for_status()
