"""
Register event extraction from L2 portal public logs

A public log of the portal's Register event is laid out as
    [eth_token, aztec_token, event_selector]
where eth_token is the L1 token address as a field element and the event
selector is always the last emitted field.
"""
from dataclasses import dataclass
from typing import List, Sequence

from loguru import logger

from src.chains.l2_client import AztecNodeClient, PublicLog
from src.utils.address import field_to_hex, l1_address_from_field

# eth_token, aztec_token
REGISTER_EVENT_FIELD_COUNT = 2


@dataclass(frozen=True)
class RegisterEvent:
    eth_token: str
    aztec_token: str
    block_number: int
    tx_index: int
    log_index: int


def _same_field(a: str, b: str) -> bool:
    return int(a, 16) == int(b, 16)


def extract_register_events(logs: Sequence[PublicLog], event_selector: str) -> List[RegisterEvent]:
    """
    Keep the logs whose last field is the Register selector and decode them

    Raises:
        ValueError: a log carries the selector but has the wrong length
    """
    events = []
    expected_length = REGISTER_EVENT_FIELD_COUNT + 1  # +1 for the event selector

    for log in logs:
        if not log.fields or not _same_field(log.fields[-1], event_selector):
            continue

        if len(log.fields) != expected_length:
            raise ValueError(
                f"Register log at block {log.block_number} (tx {log.tx_index}, log {log.log_index}) "
                f"has {len(log.fields)} fields, expected {expected_length}"
            )

        events.append(
            RegisterEvent(
                eth_token=l1_address_from_field(log.fields[0]),
                aztec_token=field_to_hex(log.fields[1]),
                block_number=log.block_number,
                tx_index=log.tx_index,
                log_index=log.log_index,
            )
        )

    return events


async def scan_for_register_events(
    node: AztecNodeClient,
    portal_address: str,
    from_block: int,
    to_block: int,
    event_selector: str,
) -> List[RegisterEvent]:
    """Register events emitted by the portal in [from_block, to_block]"""
    logs = await node.get_public_logs(portal_address, from_block, to_block)
    events = extract_register_events(logs, event_selector)
    logger.debug(f"Filtered {len(logs)} portal logs to {len(events)} Register events")
    return events
