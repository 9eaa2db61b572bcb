"""
chains/providers.py - Retrying JSON-RPC access to the node's HTTP endpoint.

Provides reliable RPC access with:
- Uniform retry policy (tenacity) for transient failures
- Immediate surfacing of non-transient failures
- Request timeout handling
- Latency and retry tracking
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import RetryPolicy
from core.constants import (
    DEFAULT_RPC_TIMEOUT_SECONDS,
    RETRYABLE_HTTP_STATUSES,
    RPC_LIMIT_EXCEEDED_CODE,
    ErrorCode,
)
from core.exceptions import RpcError
from core.logging import get_logger
from core.models import BlockData, parse_hex_quantity

logger = get_logger(__name__)

RATE_LIMIT_MARKERS = ("rate limit", "too many requests", "limit exceeded")


class TransientRpcError(RpcError):
    """Network, timeout or server-busy failure. Retried by the provider."""


@dataclass
class RPCStats:
    """Statistics for the RPC endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    retries: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


@dataclass
class RPCResponse:
    """Response from an RPC call."""
    result: Any
    latency_ms: int
    attempts: int = 1


def is_rate_limit_error(error: dict) -> bool:
    """True if a JSON-RPC error object means the node is busy."""
    if error.get("code") == RPC_LIMIT_EXCEEDED_CODE:
        return True
    message = str(error.get("message", "")).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class RPCProvider:
    """
    JSON-RPC client with a retry policy applied to every request.

    Transient failures are retried with exponential backoff; anything else
    raises RpcError straight away. Once retries are exhausted exactly one
    RpcError is raised, chained to the last underlying failure.
    """

    def __init__(
        self,
        url: str,
        retry_policy: RetryPolicy,
        timeout_seconds: float = DEFAULT_RPC_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.url = url
        self.retry_policy = retry_policy
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._sleep = sleep
        self._request_id = 0
        self.stats = RPCStats(url=url)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=10),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RPCProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id

    def _retrying(self) -> AsyncRetrying:
        policy = self.retry_policy
        return AsyncRetrying(
            stop=stop_after_attempt(policy.attempts),
            wait=wait_exponential(
                multiplier=policy.initial_backoff_ms / 1000,
                exp_base=policy.backoff_growth,
                max=policy.max_backoff_ms / 1000,
            ),
            retry=retry_if_exception_type(TransientRpcError),
            before_sleep=self._before_retry,
            sleep=self._sleep,
        )

    def _before_retry(self, retry_state: RetryCallState) -> None:
        self.stats.retries += 1
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            "Transient RPC failure, retrying",
            extra={"context": {
                "attempt": retry_state.attempt_number,
                "max_attempts": self.retry_policy.attempts,
                "backoff_s": round(delay, 3),
                "error": str(error),
            }},
        )

    async def call(
        self,
        method: str,
        params: list | None = None,
    ) -> RPCResponse:
        """
        Make an RPC call under the retry policy.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            RPCResponse with result and metadata

        Raises:
            RpcError: non-transient failure, or transient failures exhausted retries
        """
        attempts = 0
        try:
            async for attempt in self._retrying():
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    response = await self._send(method, params)
                    response.attempts = attempts
                    return response
        except RetryError as e:
            last_error = e.last_attempt.exception()
            raise RpcError(
                f"{method} failed after {attempts} attempts: {last_error}",
                code=ErrorCode.RPC_RETRIES_EXHAUSTED,
                details={
                    "method": method,
                    "attempts": attempts,
                    "last_error": str(last_error),
                },
            ) from last_error
        # Unreachable: tenacity either returns through the block or raises
        raise RpcError(f"{method} made no attempts", details={"method": method})

    async def _send(self, method: str, params: list | None) -> RPCResponse:
        """Single attempt. Classifies failures as transient or not."""
        client = await self._get_client()
        self.stats.total_requests += 1

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": self._next_request_id(),
        }
        start = time.monotonic()

        try:
            resp = await client.post(self.url, json=payload)
        except httpx.TimeoutException as e:
            raise self._failed(
                TransientRpcError(f"{method} timed out: {e!r}", details={"method": method})
            ) from e
        except httpx.TransportError as e:
            raise self._failed(
                TransientRpcError(f"{method} transport error: {e!r}", details={"method": method})
            ) from e

        latency_ms = int((time.monotonic() - start) * 1000)

        if resp.status_code in RETRYABLE_HTTP_STATUSES:
            raise self._failed(TransientRpcError(
                f"{method} returned HTTP {resp.status_code}",
                details={"method": method, "status": resp.status_code},
            ))
        if resp.status_code >= 400:
            raise self._failed(RpcError(
                f"{method} returned HTTP {resp.status_code}",
                details={"method": method, "status": resp.status_code},
            ))

        try:
            body = resp.json()
        except ValueError as e:
            raise self._failed(
                RpcError(f"{method} returned invalid JSON", details={"method": method})
            ) from e

        if not isinstance(body, dict):
            raise self._failed(RpcError(
                f"{method} returned a malformed response: expected a JSON object, got {type(body).__name__}",
                details={"method": method},
            ))

        error = body.get("error")
        if error:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            error_cls = TransientRpcError if is_rate_limit_error(error) else RpcError
            raise self._failed(error_cls(
                f"RPC error: {error.get('message', error)}",
                details={"method": method, "rpc_code": error.get("code")},
            ))

        self.stats.successful_requests += 1
        self.stats.total_latency_ms += latency_ms
        logger.debug(f"{method} ok in {latency_ms}ms")

        return RPCResponse(result=body.get("result"), latency_ms=latency_ms)

    def _failed(self, error: RpcError) -> RpcError:
        self.stats.failed_requests += 1
        self.stats.last_error = error.message
        return error

    def _quantity(self, method: str, value: Any) -> int:
        try:
            return parse_hex_quantity(value)
        except (ValueError, TypeError, AttributeError) as e:
            raise RpcError(
                f"{method} returned a malformed quantity: {value!r}",
                details={"method": method},
            ) from e

    async def get_chain_id(self) -> int:
        """Get chain ID from RPC."""
        response = await self.call("eth_chainId")
        return self._quantity("eth_chainId", response.result)

    async def get_block_number(self) -> int:
        """Get latest block number."""
        response = await self.call("eth_blockNumber")
        return self._quantity("eth_blockNumber", response.result)

    async def get_block_by_number(
        self,
        block_number: int,
        full_transactions: bool = True,
    ) -> BlockData:
        """
        Fetch a block body.

        Raises:
            RpcError: with code RPC_NOT_FOUND if the node has no such block
        """
        response = await self.call(
            "eth_getBlockByNumber",
            [hex(block_number), full_transactions],
        )
        if response.result is None:
            raise RpcError(
                f"Block {block_number} not found",
                code=ErrorCode.RPC_NOT_FOUND,
                details={"block_number": block_number},
            )
        if not isinstance(response.result, dict):
            raise RpcError(
                f"Block {block_number} lookup returned a malformed result: {type(response.result).__name__}",
                details={"block_number": block_number},
            )
        return BlockData(number=block_number, block=response.result)

    def get_stats_summary(self) -> dict:
        """Get statistics summary for the endpoint."""
        s = self.stats
        return {
            "url": s.url,
            "total_requests": s.total_requests,
            "success_rate": round(s.success_rate, 3),
            "retries": s.retries,
            "avg_latency_ms": s.avg_latency_ms,
            "last_error": s.last_error,
        }
