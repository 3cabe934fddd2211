"""
Unit tests for L1Collector
"""

import pytest
from unittest.mock import AsyncMock

from src.chains.abi import MESSAGE_SENT_EVENT, REGISTERED_EVENT, STATUS_UPDATED_EVENT
from src.collectors.config import L1CollectorConfig
from src.collectors.l1_collector import L1Collector
from src.core.enums import AllowListStatus, MetadataState

from conftest import SUBMITTER, TOKEN_A, TOKEN_B, make_log

PORTAL = "0x" + "01" * 20
INBOX = "0x" + "02" * 20
ALLOW_LIST = "0x" + "03" * 20


def _registered(tx_hash, token=TOKEN_A, block_number=10):
    return make_log(
        "Registered",
        tx_hash,
        {"token": token, "leaf": "0x" + "12" * 32, "index": 3},
        block_number=block_number,
        address=PORTAL,
    )


def _message_sent(tx_hash, l2_block=42):
    return make_log(
        "MessageSent",
        tx_hash,
        {"l2BlockNumber": l2_block, "index": 7, "hash": "0x" + "34" * 32, "rollingHash": "0x" + "00" * 16},
        address=INBOX,
    )


def _status_updated(tx_hash, addr=TOKEN_A, status=1):
    return make_log("StatusUpdated", tx_hash, {"addr": addr, "status": status, "prev": 0}, address=ALLOW_LIST)


def _client(registered=(), message_sent=(), status_updated=()):
    """L1Client mock answering get_logs per event"""
    logs = {
        REGISTERED_EVENT["name"]: list(registered),
        MESSAGE_SENT_EVENT["name"]: list(message_sent),
        STATUS_UPDATED_EVENT["name"]: list(status_updated),
    }

    async def get_logs(address, event_abi, from_block, to_block):
        return logs[event_abi["name"]]

    client = AsyncMock()
    client.get_logs = AsyncMock(side_effect=get_logs)
    client.get_transaction_sender = AsyncMock(return_value=SUBMITTER)
    client.get_block_number = AsyncMock(return_value=5000)
    return client


@pytest.fixture
def metadata_service():
    service = AsyncMock()
    service.ensure_token_metadata.return_value = MetadataState.PRESENT
    return service


def _collector(client, metadata_service):
    config = L1CollectorConfig(
        rpc_url="http://l1",
        portal_address=PORTAL,
        allow_list_address=ALLOW_LIST,
        inbox_address=INBOX,
    )
    return L1Collector(config, client, metadata_service)


@pytest.mark.asyncio
async def test_correlated_registration(metadata_service):
    client = _client(registered=[_registered("0xtx1")], message_sent=[_message_sent("0xtx1")])
    collector = _collector(client, metadata_service)

    registrations = await collector.get_l1_token_registrations(100, 200)

    assert len(registrations) == 1
    registration = registrations[0]
    assert registration.l1_address == TOKEN_A
    assert registration.block_number == 10
    assert registration.transaction_hash == "0xtx1"
    assert registration.submitter_address == SUBMITTER
    assert registration.l2_available_block == 42
    assert registration.l1_to_l2_message_index == 7
    assert registration.l1_to_l2_message_hash == "0x" + "34" * 32

    metadata_service.ensure_token_metadata.assert_awaited_once_with(TOKEN_A)
    client.get_transaction_sender.assert_awaited_once_with("0xtx1")


@pytest.mark.asyncio
async def test_uncorrelated_registration_dropped_with_warning(metadata_service, log_records):
    client = _client(registered=[_registered("0xtx1")], message_sent=[_message_sent("0xtx2")])
    collector = _collector(client, metadata_service)

    registrations = await collector.get_l1_token_registrations(100, 200)

    assert registrations == []
    warnings = [r["message"] for r in log_records if r["level"].name == "WARNING"]
    assert any("0xtx1" in message for message in warnings)
    client.get_transaction_sender.assert_not_awaited()


@pytest.mark.asyncio
async def test_queries_each_contract_over_the_range(metadata_service):
    client = _client()
    collector = _collector(client, metadata_service)

    await collector.scan(101, 1100)

    calls = {(c.args[0], c.args[1]["name"], c.args[2], c.args[3]) for c in client.get_logs.await_args_list}
    assert calls == {
        (PORTAL, "Registered", 101, 1100),
        (INBOX, "MessageSent", 101, 1100),
        (ALLOW_LIST, "StatusUpdated", 101, 1100),
    }


@pytest.mark.asyncio
async def test_metadata_requested_once_per_token(metadata_service):
    client = _client(
        registered=[_registered("0xtx1"), _registered("0xtx2"), _registered("0xtx3", token=TOKEN_B)],
        message_sent=[_message_sent("0xtx1"), _message_sent("0xtx2"), _message_sent("0xtx3")],
    )
    collector = _collector(client, metadata_service)

    registrations = await collector.get_l1_token_registrations(1, 10)

    assert len(registrations) == 3
    requested = [c.args[0] for c in metadata_service.ensure_token_metadata.await_args_list]
    assert requested == [TOKEN_A, TOKEN_B]


@pytest.mark.asyncio
async def test_registered_without_token_is_skipped(metadata_service):
    log = _registered("0xtx1")
    log.args["token"] = None
    client = _client(registered=[log], message_sent=[_message_sent("0xtx1")])

    registrations = await _collector(client, metadata_service).get_l1_token_registrations(1, 10)

    assert registrations == []


@pytest.mark.asyncio
async def test_registration_log_failure_propagates(metadata_service):
    client = _client()
    client.get_logs = AsyncMock(side_effect=ConnectionError("rpc down"))

    with pytest.raises(ConnectionError):
        await _collector(client, metadata_service).scan(1, 10)


@pytest.mark.asyncio
async def test_allow_list_proposal(metadata_service):
    client = _client(status_updated=[_status_updated("0xp1", status=1)])

    events = await _collector(client, metadata_service).get_l1_token_allow_list_events(1, 10)

    assert len(events) == 1
    event = events[0]
    assert event.status == AllowListStatus.PROPOSED
    assert event.proposal_tx == "0xp1"
    assert event.proposer_address == SUBMITTER
    assert event.resolution_tx is None
    assert event.approver_address is None
    metadata_service.ensure_token_metadata.assert_awaited_once_with(TOKEN_A)


@pytest.mark.asyncio
@pytest.mark.parametrize("status, expected", [(2, AllowListStatus.ACCEPTED), (3, AllowListStatus.REJECTED)])
async def test_allow_list_resolution_skips_metadata(metadata_service, status, expected):
    client = _client(status_updated=[_status_updated("0xr1", status=status)])

    events = await _collector(client, metadata_service).get_l1_token_allow_list_events(1, 10)

    event = events[0]
    assert event.status == expected
    assert event.resolution_tx == "0xr1"
    assert event.approver_address == SUBMITTER
    assert event.proposal_tx is None
    assert event.proposer_address is None
    metadata_service.ensure_token_metadata.assert_not_awaited()


@pytest.mark.asyncio
async def test_invalid_allow_list_logs_skipped(metadata_service):
    client = _client(
        status_updated=[
            _status_updated("0xbad1", addr=None),
            _status_updated("0xbad2", status=0),
            _status_updated("0xok", status=1),
        ]
    )

    events = await _collector(client, metadata_service).get_l1_token_allow_list_events(1, 10)

    assert [event.proposal_tx for event in events] == ["0xok"]


@pytest.mark.asyncio
async def test_unknown_allow_list_status_raises(metadata_service):
    client = _client(status_updated=[_status_updated("0xtx", status=9)])

    with pytest.raises(ValueError):
        await _collector(client, metadata_service).get_l1_token_allow_list_events(1, 10)


@pytest.mark.asyncio
async def test_scan_returns_both_record_kinds(metadata_service):
    client = _client(
        registered=[_registered("0xtx1")],
        message_sent=[_message_sent("0xtx1")],
        status_updated=[_status_updated("0xp1", addr=TOKEN_B)],
    )

    result = await _collector(client, metadata_service).scan(1, 10)

    assert [r.l1_address for r in result.registrations] == [TOKEN_A]
    assert [e.l1_address for e in result.allow_list_events] == [TOKEN_B]


@pytest.mark.asyncio
async def test_get_block_number(metadata_service):
    assert await _collector(_client(), metadata_service).get_block_number() == 5000
