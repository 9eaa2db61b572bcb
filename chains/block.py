"""
chains/block.py - Block cadence and startup head check.

Provides:
- On-cadence predicate for the configured block interval
- Latest-block fetch used as the startup connectivity precondition
"""

from dataclasses import dataclass

from core.time import now_ms
from core.logging import get_logger
from core.exceptions import NodeConnectionError, RpcError
from chains.providers import RPCProvider

logger = get_logger(__name__)


def is_on_cadence(block_number: int, interval: int) -> bool:
    """True if the block number is an exact multiple of the interval."""
    if interval <= 0:
        raise ValueError(f"block interval must be positive, got {interval}")
    return block_number % interval == 0


def next_on_cadence(block_number: int, interval: int) -> int:
    """First on-cadence block at or after block_number."""
    if is_on_cadence(block_number, interval):
        return block_number
    return block_number + interval - block_number % interval


@dataclass
class HeadState:
    """Chain and latest block seen over HTTP at startup."""
    chain_id: int
    block_number: int
    observed_at_ms: int


async def fetch_latest_block(provider: RPCProvider) -> HeadState:
    """
    Fetch the current head over HTTP.

    Args:
        provider: RPC provider instance

    Returns:
        HeadState with chain id, block number and local observation time

    Raises:
        NodeConnectionError: If the node cannot be queried
    """
    try:
        chain_id = await provider.get_chain_id()
        block_number = await provider.get_block_number()
    except RpcError as e:
        raise NodeConnectionError(
            f"Failed to fetch latest block from {provider.url}: {e.message}",
            details={"url": provider.url},
        ) from e

    logger.info(
        f"Latest block number: {block_number}",
        extra={"context": {"chain_id": chain_id}},
    )

    return HeadState(chain_id=chain_id, block_number=block_number, observed_at_ms=now_ms())
