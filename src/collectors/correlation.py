"""
Join of portal Registered logs with inbox MessageSent logs

Both events are emitted by the same L1 transaction, so the join key is the
transaction hash. A Registered log without a MessageSent partner in the
scanned window is reported as unmatched; it is not carried over to the next
window.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from src.chains.l1_client import DecodedLog


@dataclass(frozen=True)
class CorrelatedRegistration:
    registered: DecodedLog
    message_sent: DecodedLog


@dataclass
class CorrelationResult:
    matched: List[CorrelatedRegistration] = field(default_factory=list)
    unmatched: List[DecodedLog] = field(default_factory=list)

    @property
    def dropped(self) -> int:
        return len(self.unmatched)


def correlate_registrations(
    registered_logs: Sequence[DecodedLog],
    message_sent_logs: Sequence[DecodedLog],
) -> CorrelationResult:
    """
    Pair each Registered log with the MessageSent log of the same transaction

    Registered logs keep their input order. If a transaction emitted more
    than one MessageSent, the last one wins.
    """
    messages_by_tx: Dict[str, DecodedLog] = {}
    for message in message_sent_logs:
        messages_by_tx[message.transaction_hash.lower()] = message

    result = CorrelationResult()
    for registered in registered_logs:
        message = messages_by_tx.get(registered.transaction_hash.lower())
        if message is None:
            result.unmatched.append(registered)
        else:
            result.matched.append(CorrelatedRegistration(registered, message))

    return result
