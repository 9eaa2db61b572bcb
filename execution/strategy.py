# PATH: execution/strategy.py
"""
Block execution strategies.

A strategy turns resolved block data into a ProofArtifact and raises on
failure. The executor never branches on which strategy it holds.

Bundled variants:
  execute-only  summarises the block without proving (dry runs, canaries)
  command       hands the block to an external prover process
"""

import asyncio
import base64
import json
import os
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from config import ProverConfig
from core.constants import StrategyKind
from core.exceptions import ConfigError, ExecutionError
from core.logging import get_logger
from core.models import BlockData, ProofArtifact

logger = get_logger(__name__)

STDERR_TAIL_CHARS = 2000


class BlockExecutionStrategy(ABC):
    """Executes (and possibly proves) one block."""

    name: str = "abstract"

    @abstractmethod
    async def run(self, block: BlockData) -> ProofArtifact:
        """
        Process one block.

        Raises:
            Exception: any failure; the executor wraps it in ExecutionError
        """


class ExecuteOnlyStrategy(BlockExecutionStrategy):
    """Checks the block body and reports its execution footprint."""

    name = StrategyKind.EXECUTE_ONLY.value

    async def run(self, block: BlockData) -> ProofArtifact:
        if not block.hash:
            raise ExecutionError(
                f"Block {block.number} has no hash",
                details={"block_number": block.number},
            )

        return ProofArtifact(
            block_number=block.number,
            metadata={
                "hash": block.hash,
                "transaction_count": block.transaction_count,
                "gas_used": block.gas_used,
            },
        )


class CommandStrategy(BlockExecutionStrategy):
    """
    Runs an external prover once per block.

    The block JSON is written to stdin and BLOCK_NUMBER is set in the
    environment. The process must exit 0 and print one JSON object:
      {"proof": "<base64>", "cycles": int, "proving_time_ms": int,
       "verifier_id": str, ...}
    Unknown keys are kept as artifact metadata.
    """

    name = StrategyKind.COMMAND.value

    def __init__(self, command: Sequence[str], timeout_seconds: Optional[float] = None):
        if not command:
            raise ConfigError("CommandStrategy needs a command")
        self.command = list(command)
        self.timeout_seconds = timeout_seconds

    async def run(self, block: BlockData) -> ProofArtifact:
        env = dict(os.environ, BLOCK_NUMBER=str(block.number))
        process = await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(json.dumps(block.block).encode()),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ExecutionError(
                f"Prover timed out after {self.timeout_seconds}s on block {block.number}",
                details={"block_number": block.number},
            )

        if process.returncode != 0:
            raise ExecutionError(
                f"Prover exited with code {process.returncode} on block {block.number}",
                details={
                    "block_number": block.number,
                    "returncode": process.returncode,
                    "stderr": stderr.decode(errors="replace")[-STDERR_TAIL_CHARS:],
                },
            )

        return self._parse_output(block.number, stdout)

    @staticmethod
    def _parse_output(block_number: int, stdout: bytes) -> ProofArtifact:
        try:
            data = json.loads(stdout)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            proof = data.pop("proof", None)
            return ProofArtifact(
                block_number=block_number,
                proof=base64.b64decode(proof) if proof else None,
                cycles=int(data.pop("cycles", 0)),
                proving_time_ms=int(data.pop("proving_time_ms", 0)),
                verifier_id=data.pop("verifier_id", None),
                metadata=data,
            )
        except (ValueError, TypeError) as e:
            raise ExecutionError(
                f"Prover output for block {block_number} is not valid: {e}",
                details={"block_number": block_number},
            ) from e


def build_strategy(config: ProverConfig) -> BlockExecutionStrategy:
    """Instantiate the strategy selected in the configuration."""
    if config.strategy == StrategyKind.COMMAND:
        return CommandStrategy(config.strategy_command)
    return ExecuteOnlyStrategy()
