"""
Collector configuration

Built once at startup from config.config and handed to the collectors and
the collector service as explicit parameters.
"""
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from config import config as settings
from src.utils.address import is_l1_address, is_l2_address


@dataclass
class L1CollectorConfig:
    rpc_url: str
    portal_address: str
    allow_list_address: str
    inbox_address: str
    network: str = ""
    start_block: int = 0
    chunk_size: int = 1000


@dataclass
class L2CollectorConfig:
    node_url: str
    portal_address: str
    register_event_selector: str
    start_block: int = 1
    chunk_size: int = 100
    artifacts_api_url: Optional[str] = None


@dataclass
class CollectorConfig:
    l1: L1CollectorConfig
    l2: L2CollectorConfig
    polling_interval_ms: int = 30000
    rpc_timeout_seconds: float = 30.0
    # One-shot overrides, consumed by the first poll that sees them
    force_l1_start_block: Optional[int] = None
    force_l2_start_block: Optional[int] = None

    @property
    def is_backfill(self) -> bool:
        return self.force_l1_start_block is not None or self.force_l2_start_block is not None


def parse_start_block_override(name: str, raw: Optional[str]) -> Optional[int]:
    """
    Parse a FORCE_*_START_BLOCK value

    Raises:
        ValueError: value is set but not a non-negative integer
    """
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = int(str(raw).strip(), 10)
    except ValueError:
        raise ValueError(f"Invalid {name} value: {raw}") from None
    if value < 0:
        raise ValueError(f"Invalid {name} value: {raw}")
    return value


def validate_addresses(cfg: CollectorConfig) -> None:
    """
    Raises:
        ValueError: on the first malformed contract address
    """
    for label, address in (
        ("L1 portal", cfg.l1.portal_address),
        ("L1 allow list", cfg.l1.allow_list_address),
        ("L1 inbox", cfg.l1.inbox_address),
    ):
        if not is_l1_address(address):
            raise ValueError(f"Invalid {label} address: {address}")

    if not is_l2_address(cfg.l2.portal_address):
        raise ValueError(f"Invalid L2 portal address: {cfg.l2.portal_address}")


async def get_collector_config(l1_client=None, l2_client=None) -> CollectorConfig:
    """
    Build CollectorConfig from environment settings

    Missing allow-list / inbox addresses are resolved on chain: the
    allow-list from the L1 portal, the inbox from the L2 node.

    Args:
        l1_client: L1Client used to resolve the allow-list address
        l2_client: AztecNodeClient used to resolve the inbox address
    """
    settings.validate_config()

    allow_list_address = settings.L1_ALLOW_LIST_ADDRESS
    if not allow_list_address:
        if l1_client is None:
            raise ValueError("L1_ALLOW_LIST_ADDRESS is not set and no L1 client to resolve it")
        allow_list_address = await l1_client.read_allow_list_address(settings.L1_PORTAL_ADDRESS)
        logger.info(f"Resolved L1 allow list from portal: {allow_list_address}")

    inbox_address = settings.L1_INBOX_ADDRESS
    if not inbox_address:
        if l2_client is None:
            raise ValueError("L1_INBOX_ADDRESS is not set and no L2 client to resolve it")
        l1_contracts = await l2_client.get_l1_contract_addresses()
        inbox_address = l1_contracts.get("inboxAddress", "")
        logger.info(f"Resolved L1 inbox from L2 node: {inbox_address}")

    cfg = CollectorConfig(
        l1=L1CollectorConfig(
            rpc_url=settings.L1_RPC_URL,
            portal_address=settings.L1_PORTAL_ADDRESS.lower(),
            allow_list_address=allow_list_address.lower(),
            inbox_address=inbox_address.lower(),
            network=settings.NETWORK,
            start_block=settings.L1_START_BLOCK,
            chunk_size=settings.L1_CHUNK_SIZE,
        ),
        l2=L2CollectorConfig(
            node_url=settings.L2_NODE_URL,
            portal_address=settings.L2_PORTAL_ADDRESS.lower(),
            register_event_selector=settings.L2_REGISTER_EVENT_SELECTOR,
            start_block=settings.L2_START_BLOCK,
            chunk_size=settings.L2_CHUNK_SIZE,
            artifacts_api_url=settings.ARTIFACTS_API_URL or None,
        ),
        polling_interval_ms=settings.POLLING_INTERVAL_MS,
        rpc_timeout_seconds=settings.RPC_TIMEOUT_SECONDS,
        force_l1_start_block=parse_start_block_override(
            "FORCE_L1_START_BLOCK", settings.FORCE_L1_START_BLOCK
        ),
        force_l2_start_block=parse_start_block_override(
            "FORCE_L2_START_BLOCK", settings.FORCE_L2_START_BLOCK
        ),
    )

    validate_addresses(cfg)
    return cfg
