"""
chains/subscription.py - New-head subscription and ready-block production.

HeaderSubscription owns the websocket and yields BlockHeader values.
ChainHeadMonitor filters them to the configured cadence and applies the
settling delay before handing a block number downstream.
"""

import asyncio
import json
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from chains.block import is_on_cadence
from core.constants import DEFAULT_SETTLE_DELAY_SECONDS
from core.exceptions import ConfigError, NodeConnectionError
from core.logging import get_logger
from core.models import BlockHeader

logger = get_logger(__name__)

SUBSCRIBE_REQUEST_ID = 1


class HeaderSubscription:
    """
    One persistent `eth_subscribe newHeads` subscription.

    There is no resubscription: a failed connect() is fatal, and a closed
    connection ends the header stream.
    """

    def __init__(
        self,
        url: str,
        open_timeout: float = 10.0,
        ping_interval: float = 20.0,
        connector: Callable[..., Awaitable[ClientConnection]] = connect,
    ):
        self.url = url
        self.open_timeout = open_timeout
        self.ping_interval = ping_interval
        self._connector = connector
        self._ws: Optional[ClientConnection] = None
        self.subscription_id: Optional[str] = None

    async def connect(self) -> None:
        """
        Open the websocket and subscribe to new heads.

        Raises:
            NodeConnectionError: If the connection or the subscription fails
        """
        try:
            self._ws = await self._connector(
                self.url,
                open_timeout=self.open_timeout,
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_interval,
            )
            await self._ws.send(json.dumps({
                "jsonrpc": "2.0",
                "id": SUBSCRIBE_REQUEST_ID,
                "method": "eth_subscribe",
                "params": ["newHeads"],
            }))
            reply = json.loads(
                await asyncio.wait_for(self._ws.recv(), timeout=self.open_timeout)
            )
        except (OSError, asyncio.TimeoutError, WebSocketException, ValueError) as e:
            await self.close()
            raise NodeConnectionError(
                f"Failed to subscribe to new heads at {self.url}: {e!r}",
                details={"url": self.url},
            ) from e

        if not isinstance(reply, dict) or "error" in reply or not reply.get("result"):
            await self.close()
            raise NodeConnectionError(
                f"Node rejected newHeads subscription: {reply}",
                details={"url": self.url},
            )

        self.subscription_id = reply["result"]
        logger.info(
            "Subscribed to new heads",
            extra={"context": {"url": self.url, "subscription_id": self.subscription_id}},
        )

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    def _parse(self, message: str | bytes) -> Optional[BlockHeader]:
        try:
            data = json.loads(message)
            if data.get("method") != "eth_subscription":
                return None
            params = data["params"]
            if self.subscription_id and params.get("subscription") != self.subscription_id:
                return None
            return BlockHeader.from_rpc(params["result"])
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.debug(f"Skipping malformed subscription frame: {e!r}")
            return None

    async def __aiter__(self) -> AsyncIterator[BlockHeader]:
        if self._ws is None:
            raise NodeConnectionError("Subscription is not connected", details={"url": self.url})

        try:
            async for message in self._ws:
                header = self._parse(message)
                if header is not None:
                    yield header
        except ConnectionClosedOK:
            pass
        except ConnectionClosed as e:
            logger.warning(
                "Head subscription closed",
                extra={"context": {"url": self.url, "reason": str(e)}},
            )


class ChainHeadMonitor:
    """
    Turns a header stream into a stream of ready block numbers.

    Off-cadence headers are dropped without a trace. On-cadence headers are
    held for the settling delay so that the HTTP read path has caught up by
    the time the block number is yielded. No dedup and no reordering.
    """

    def __init__(
        self,
        headers: AsyncIterable[BlockHeader],
        interval: int,
        settle_delay_seconds: float = DEFAULT_SETTLE_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval <= 0:
            raise ConfigError(f"block interval must be positive, got {interval}")
        self.interval = interval
        self.settle_delay_seconds = settle_delay_seconds
        self._headers = headers
        self._sleep = sleep
        self._started = False

    def ready_blocks(self) -> AsyncIterator[int]:
        """
        Lazy, non-restartable sequence of ready block numbers.

        Raises:
            RuntimeError: If called a second time
        """
        if self._started:
            raise RuntimeError("ready_blocks() can only be consumed once")
        self._started = True
        return self._produce()

    async def _produce(self) -> AsyncIterator[int]:
        async for header in self._headers:
            if not is_on_cadence(header.number, self.interval):
                continue
            await self._sleep(self.settle_delay_seconds)
            yield header.number
