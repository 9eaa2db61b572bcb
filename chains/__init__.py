"""
chains/ - Blockchain interaction layer.

Modules:
- providers: Retrying JSON-RPC provider over HTTP
- block: Block cadence predicate and startup head check
- subscription: New-head subscription and ready-block monitor
"""

from chains.providers import (
    RPCProvider,
    RPCResponse,
    RPCStats,
    TransientRpcError,
)
from chains.block import (
    HeadState,
    fetch_latest_block,
    is_on_cadence,
    next_on_cadence,
)
from chains.subscription import (
    ChainHeadMonitor,
    HeaderSubscription,
)

__all__ = [
    # Providers
    "RPCProvider",
    "RPCResponse",
    "RPCStats",
    "TransientRpcError",
    # Block
    "HeadState",
    "fetch_latest_block",
    "is_on_cadence",
    "next_on_cadence",
    # Subscription
    "ChainHeadMonitor",
    "HeaderSubscription",
]
