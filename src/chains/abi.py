"""
Minimal ABIs for the L1 contracts the collector reads

Only the events and views actually used are listed.
"""

# ITokenPortal
REGISTERED_EVENT = {
    "type": "event",
    "name": "Registered",
    "anonymous": False,
    "inputs": [
        {"name": "token", "type": "address", "indexed": True},
        {"name": "leaf", "type": "bytes32", "indexed": False},
        {"name": "index", "type": "uint256", "indexed": False},
    ],
}

PORTAL_ALLOW_LIST_FUNCTION = {
    "type": "function",
    "name": "allowList",
    "stateMutability": "view",
    "inputs": [],
    "outputs": [{"name": "", "type": "address"}],
}

# Rollup inbox
MESSAGE_SENT_EVENT = {
    "type": "event",
    "name": "MessageSent",
    "anonymous": False,
    "inputs": [
        {"name": "l2BlockNumber", "type": "uint256", "indexed": True},
        {"name": "index", "type": "uint256", "indexed": False},
        {"name": "hash", "type": "bytes32", "indexed": True},
        {"name": "rollingHash", "type": "bytes16", "indexed": False},
    ],
}

# IAllowList
STATUS_UPDATED_EVENT = {
    "type": "event",
    "name": "StatusUpdated",
    "anonymous": False,
    "inputs": [
        {"name": "addr", "type": "address", "indexed": True},
        {"name": "status", "type": "uint8", "indexed": True},
        {"name": "prev", "type": "uint8", "indexed": True},
    ],
}

ERC20_METADATA_ABI = [
    {
        "type": "function",
        "name": "name",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "symbol",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]


def event_signature(event_abi: dict) -> str:
    """Registered(address,bytes32,uint256)"""
    types = ",".join(item["type"] for item in event_abi["inputs"])
    return f"{event_abi['name']}({types})"
