"""
Unit tests for Registered / MessageSent correlation
"""

from src.collectors.correlation import correlate_registrations

from conftest import TOKEN_A, TOKEN_B, make_log


def _registered(tx_hash, token=TOKEN_A):
    return make_log("Registered", tx_hash, {"token": token, "leaf": "0x" + "12" * 32, "index": 3})


def _message_sent(tx_hash, l2_block=42):
    return make_log("MessageSent", tx_hash, {"l2BlockNumber": l2_block, "index": 7, "hash": "0x" + "34" * 32})


def test_same_transaction_is_matched():
    result = correlate_registrations([_registered("0xtx1")], [_message_sent("0xtx1")])

    assert len(result.matched) == 1
    assert result.dropped == 0
    assert result.matched[0].registered.transaction_hash == "0xtx1"
    assert result.matched[0].message_sent.args["l2BlockNumber"] == 42


def test_different_transaction_is_unmatched():
    result = correlate_registrations([_registered("0xtx1")], [_message_sent("0xtx2")])

    assert result.matched == []
    assert result.dropped == 1
    assert result.unmatched[0].transaction_hash == "0xtx1"


def test_join_ignores_hash_case():
    result = correlate_registrations([_registered("0xABC")], [_message_sent("0xabc")])
    assert len(result.matched) == 1


def test_registered_order_is_kept():
    registered = [_registered("0xtx2", TOKEN_B), _registered("0xtx1", TOKEN_A)]
    messages = [_message_sent("0xtx1"), _message_sent("0xtx2")]

    result = correlate_registrations(registered, messages)

    assert [pair.registered.args["token"] for pair in result.matched] == [TOKEN_B, TOKEN_A]


def test_last_message_of_a_transaction_wins():
    messages = [_message_sent("0xtx1", l2_block=1), _message_sent("0xtx1", l2_block=2)]

    result = correlate_registrations([_registered("0xtx1")], messages)

    assert result.matched[0].message_sent.args["l2BlockNumber"] == 2


def test_empty_inputs():
    result = correlate_registrations([], [_message_sent("0xtx1")])
    assert result.matched == []
    assert result.unmatched == []
