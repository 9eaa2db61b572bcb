# PATH: execution/orchestrator.py
"""
Orchestration loop.

Pulls ready blocks from the ChainHeadMonitor one at a time and awaits each
block's pipeline to completion before asking for the next one. Failures go
to the FailureAlertDispatcher; the loop itself only ends when the ready
block sequence ends or a stop is requested.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from chains.subscription import ChainHeadMonitor
from core.exceptions import ExecutionError
from core.logging import get_logger
from core.models import ExecutionOutcome, Failure
from execution.executor import BlockTaskExecutor
from execution.state_machine import LoopStateMachine
from monitoring.alerts import FailureAlertDispatcher

logger = get_logger(__name__)


@dataclass
class RunStats:
    """Counters for one run of the loop."""
    blocks_processed: int = 0
    blocks_succeeded: int = 0
    blocks_failed: int = 0
    last_block: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "blocks_processed": self.blocks_processed,
            "blocks_succeeded": self.blocks_succeeded,
            "blocks_failed": self.blocks_failed,
            "last_block": self.last_block,
        }


class BlockOrchestrator:
    """Single-flight driver from ready blocks to outcomes."""

    def __init__(
        self,
        monitor: ChainHeadMonitor,
        executor: BlockTaskExecutor,
        dispatcher: FailureAlertDispatcher,
    ):
        self.monitor = monitor
        self.executor = executor
        self.dispatcher = dispatcher
        self.state = LoopStateMachine()
        self.stats = RunStats()
        self._stop_requested = False

    def stop(self) -> None:
        """Stop after the in-flight block (if any) completes."""
        self._stop_requested = True

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    async def run(self) -> RunStats:
        """
        Run until the ready-block sequence ends or stop() is called.

        Returns:
            RunStats for this run
        """
        logger.info(
            "Waiting for ready blocks",
            extra={"context": {"interval": self.monitor.interval}},
        )

        async for block_number in self.monitor.ready_blocks():
            if self._stop_requested:
                break
            await self.process_block(block_number)
            if self._stop_requested:
                break

        logger.info("Orchestration loop finished", extra={"context": self.stats.to_dict()})
        return self.stats

    async def process_block(self, block_number: int) -> ExecutionOutcome:
        """Execute one block and route its outcome."""
        self.state.begin(block_number)

        try:
            outcome = await self.executor.execute(block_number)
        except Exception as e:
            outcome = Failure(
                block_number=block_number,
                error=ExecutionError(
                    f"Executor raised {e!r}",
                    details={"block_number": block_number},
                ),
            )

        self.stats.blocks_processed += 1
        self.stats.last_block = block_number

        if outcome.is_success:
            self.state.succeeded()
            self.stats.blocks_succeeded += 1
        else:
            self.state.failed()
            self.stats.blocks_failed += 1
            await self.dispatcher.dispatch(block_number, outcome.error)

        self.state.finish()
        return outcome
