"""
Unit tests for ContractRegistryService
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from src.collectors.errors import InvalidAddressError
from src.collectors.records import TokenMetadata
from src.database.crud import get_contract_instance_by_address
from src.services.contract_registry import ContractRegistryService

from conftest import L2_PORTAL, L2_TOKEN_A

METADATA = TokenMetadata(symbol="AAA", name="Token A", decimals=18)


def test_build_deployment_params():
    params = ContractRegistryService.build_deployment_params(L2_PORTAL, METADATA)

    assert params["constructorName"] == "constructor_with_minter"
    assert params["constructorArgs"]["minter"] == L2_PORTAL
    assert params["constructorArgs"]["decimals"] == 18
    assert params["constructorArgs"]["upgradeAuthority"] == "0x" + "0" * 64


@pytest.mark.asyncio
async def test_store_token_instance_without_api(session_maker):
    registry = ContractRegistryService(session_maker)

    await registry.store_token_instance(L2_TOKEN_A.upper().replace("0X", "0x"), L2_PORTAL, METADATA)

    async with session_maker() as session:
        instance = await get_contract_instance_by_address(session, L2_TOKEN_A)
    assert instance is not None
    assert instance.deployment_params["constructorArgs"]["symbol"] == "AAA"


@pytest.mark.asyncio
async def test_store_token_instance_uploads_when_configured(session_maker):
    registry = ContractRegistryService(session_maker, artifacts_api_url="http://artifacts/")

    mock_response = MagicMock()
    mock_response.raise_for_status = MagicMock()
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = MagicMock()
    mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)

    with patch("aiohttp.ClientSession", return_value=mock_session):
        await registry.store_token_instance(L2_TOKEN_A, L2_PORTAL, METADATA)

    url = mock_session.post.call_args.args[0]
    body = mock_session.post.call_args.kwargs["json"]
    assert url == "http://artifacts/contract-instances"
    assert body["address"] == L2_TOKEN_A


@pytest.mark.asyncio
async def test_store_token_instance_reraises(session_maker):
    registry = ContractRegistryService(session_maker, artifacts_api_url="http://artifacts")

    with patch.object(registry, "_upload_instance", new_callable=AsyncMock) as mock_upload:
        mock_upload.side_effect = RuntimeError("artifacts down")
        with pytest.raises(RuntimeError, match="artifacts down"):
            await registry.store_token_instance(L2_TOKEN_A, L2_PORTAL, METADATA)


@pytest.mark.asyncio
async def test_invalid_l2_address_rejected(session_maker):
    registry = ContractRegistryService(session_maker)

    with pytest.raises(InvalidAddressError):
        await registry.store_token_instance("0x1234", L2_PORTAL, METADATA)
