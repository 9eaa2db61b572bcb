# PATH: execution/registry.py
"""
Proof registry clients.

The executor tells the registry when a block is queued, when proving
starts, and the terminal outcome. Every method either succeeds or raises
RegistryReportError; callers treat reporting as best-effort.
"""

import base64
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from config import RegistryConfig
from core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS
from core.exceptions import RegistryReportError
from core.logging import get_logger
from core.models import ExecutionOutcome

logger = get_logger(__name__)


class ProofRegistry(ABC):
    """Sink for per-block proving status."""

    async def mark_queued(self, block_number: int) -> None:
        """Block accepted for processing."""

    async def mark_proving(self, block_number: int) -> None:
        """Block data resolved; strategy about to run."""

    @abstractmethod
    async def report(self, block_number: int, outcome: ExecutionOutcome) -> None:
        """Terminal status for the block."""

    async def close(self) -> None:
        pass


class NullProofRegistry(ProofRegistry):
    """Used when no registry is configured."""

    async def report(self, block_number: int, outcome: ExecutionOutcome) -> None:
        logger.debug(f"Registry disabled, not reporting block {block_number}")


class EthProofsClient(ProofRegistry):
    """
    Client for the eth-proofs registry API.

    POST {endpoint}/proofs/queued   {block_number, cluster_id}
    POST {endpoint}/proofs/proving  {block_number, cluster_id}
    POST {endpoint}/proofs/proved   {block_number, cluster_id, proof,
                                     proving_cycles, proving_time, verifier_id}

    The API has no failure status; Failure outcomes are only logged, and
    the block stays in "proving" on the registry side.
    """

    def __init__(
        self,
        endpoint: str,
        api_token: str,
        cluster_id: Optional[int] = None,
        timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.cluster_id = cluster_id
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        self._owns_client = client is None
        self._auth_header = {"Authorization": f"Bearer {api_token}"}

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _post(self, path: str, payload: Dict[str, Any]) -> None:
        body = {"cluster_id": self.cluster_id, **payload}
        url = f"{self.endpoint}/{path}"
        try:
            resp = await self._client.post(url, json=body, headers=self._auth_header)
        except httpx.HTTPError as e:
            raise RegistryReportError(
                f"POST {path} failed: {e!r}",
                details={"url": url, "block_number": payload.get("block_number")},
            ) from e

        if resp.is_error:
            raise RegistryReportError(
                f"POST {path} returned HTTP {resp.status_code}",
                details={
                    "url": url,
                    "status": resp.status_code,
                    "block_number": payload.get("block_number"),
                    "body": resp.text[:500],
                },
            )

    async def mark_queued(self, block_number: int) -> None:
        await self._post("proofs/queued", {"block_number": block_number})

    async def mark_proving(self, block_number: int) -> None:
        await self._post("proofs/proving", {"block_number": block_number})

    async def report(self, block_number: int, outcome: ExecutionOutcome) -> None:
        if not outcome.is_success:
            logger.info(
                "Registry has no failure status, leaving block as proving",
                extra={"context": {"block_number": block_number}},
            )
            return

        artifact = outcome.artifact
        await self._post("proofs/proved", {
            "block_number": block_number,
            "proof": base64.b64encode(artifact.proof).decode() if artifact.proof else None,
            "proving_cycles": artifact.cycles,
            "proving_time": artifact.proving_time_ms,
            "verifier_id": artifact.verifier_id,
        })


def build_registry(config: RegistryConfig) -> ProofRegistry:
    """Registry client for the configuration, or a no-op one."""
    if not config.enabled:
        return NullProofRegistry()
    return EthProofsClient(
        endpoint=config.endpoint,
        api_token=config.api_token,
        cluster_id=config.cluster_id,
    )
