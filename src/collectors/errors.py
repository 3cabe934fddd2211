"""
Collector exceptions

Transport failures (aiohttp / web3) are not wrapped: they propagate to the
poll loop as-is and fail the cycle.
"""


class CollectorError(Exception):
    """Base class for collector errors"""


class L2ConsistencyError(CollectorError):
    """
    The L2 node returned an inconsistent view (missing block, transaction
    index out of range). Never masked: storing a record built from it would
    corrupt data.
    """


class AztecNodeError(CollectorError):
    """JSON-RPC error payload returned by the L2 node"""

    def __init__(self, method: str, code: int | None, message: str):
        self.method = method
        self.code = code
        super().__init__(f"{method} failed ({code}): {message}")


class InvalidAddressError(ValueError):
    """Address does not match the expected ledger format"""
