# PATH: execution/executor.py
"""
BlockTaskExecutor - runs the per-block pipeline to a single outcome.

PIPELINE CONTRACT:
==================
  0. registry.mark_queued        best-effort
  1. resolve block over HTTP     RpcError       -> Failure
  2. registry.mark_proving       best-effort
     strategy.run(block)         any exception  -> Failure(ExecutionError)
                                 non-artifact   -> Failure(ExecutionError)
  3. registry.report(outcome)    best-effort, always attempted

execute() never raises for per-block errors and never retries step 2.
==================
"""

from core.exceptions import ExecutionError, RegistryReportError, RpcError
from core.logging import get_logger
from core.models import ExecutionOutcome, Failure, ProofArtifact, Success
from core.time import Stopwatch
from chains.providers import RPCProvider
from execution.registry import ProofRegistry
from execution.strategy import BlockExecutionStrategy

logger = get_logger(__name__)


class BlockTaskExecutor:
    """Processes one ready block at a time."""

    def __init__(
        self,
        provider: RPCProvider,
        strategy: BlockExecutionStrategy,
        registry: ProofRegistry,
    ):
        self.provider = provider
        self.strategy = strategy
        self.registry = registry

    async def execute(self, block_number: int) -> ExecutionOutcome:
        """
        Run the pipeline for block_number.

        Returns:
            Success with the artifact, or Failure with the cause
        """
        await self._best_effort("queued", self.registry.mark_queued(block_number), block_number)

        try:
            outcome = await self._run(block_number)
        except Exception as e:
            outcome = Failure(
                block_number=block_number,
                error=ExecutionError(
                    f"Pipeline for block {block_number} raised {e!r}",
                    details={"block_number": block_number},
                ),
            )

        await self._best_effort("report", self.registry.report(block_number, outcome), block_number)

        return outcome

    async def _run(self, block_number: int) -> ExecutionOutcome:
        try:
            block = await self.provider.get_block_by_number(block_number)
        except RpcError as e:
            return Failure(block_number=block_number, error=e)
        except Exception as e:
            return Failure(
                block_number=block_number,
                error=RpcError(
                    f"Resolving block {block_number} failed: {e!r}",
                    details={"block_number": block_number},
                ),
            )

        await self._best_effort("proving", self.registry.mark_proving(block_number), block_number)

        stopwatch = Stopwatch()
        try:
            artifact = await self.strategy.run(block)
        except ExecutionError as e:
            return Failure(block_number=block_number, error=e)
        except Exception as e:
            return Failure(
                block_number=block_number,
                error=ExecutionError(
                    f"{self.strategy.name} strategy failed: {e!r}",
                    details={"block_number": block_number},
                ),
            )

        if not isinstance(artifact, ProofArtifact):
            return Failure(
                block_number=block_number,
                error=ExecutionError(
                    f"{self.strategy.name} strategy returned {type(artifact).__name__}, "
                    f"expected ProofArtifact",
                    details={"block_number": block_number},
                ),
            )

        if not artifact.proving_time_ms:
            artifact.proving_time_ms = stopwatch.elapsed_ms

        logger.info(
            f"Block {block_number} processed",
            extra={"context": {
                "block_number": block_number,
                "strategy": self.strategy.name,
                "proving_time_ms": artifact.proving_time_ms,
                "cycles": artifact.cycles,
            }},
        )
        return Success(block_number=block_number, artifact=artifact)

    async def _best_effort(self, step: str, call, block_number: int) -> None:
        """Await a registry call; failures are logged and dropped."""
        try:
            await call
        except RegistryReportError as e:
            logger.warning(
                f"Registry {step} failed for block {block_number}: {e}",
                extra={"context": {"block_number": block_number, "step": step, **e.details}},
            )
        except Exception as e:
            error = RegistryReportError(f"{step} raised {e!r}")
            logger.warning(
                f"Registry {step} failed for block {block_number}: {error}",
                extra={"context": {"block_number": block_number, "step": step}},
            )
