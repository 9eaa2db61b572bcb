# PATH: execution/__init__.py
"""
Execution layer.

This package contains:
- strategy: Block execution strategies (execute-only, external command)
- registry: Proof registry clients (eth-proofs, no-op)
- executor: Per-block pipeline producing one outcome
- state_machine: Orchestration loop states and processing cursor
- orchestrator: Single-flight loop from ready blocks to outcomes
"""

from execution.state_machine import (
    LoopStateMachine,
    StateTransition,
    InvalidTransitionError,
    VALID_TRANSITIONS,
)
from execution.strategy import (
    BlockExecutionStrategy,
    CommandStrategy,
    ExecuteOnlyStrategy,
    build_strategy,
)
from execution.registry import (
    EthProofsClient,
    NullProofRegistry,
    ProofRegistry,
    build_registry,
)
from execution.executor import BlockTaskExecutor
from execution.orchestrator import BlockOrchestrator, RunStats

__all__ = [
    # State machine
    "LoopStateMachine",
    "StateTransition",
    "InvalidTransitionError",
    "VALID_TRANSITIONS",
    # Strategies
    "BlockExecutionStrategy",
    "CommandStrategy",
    "ExecuteOnlyStrategy",
    "build_strategy",
    # Registry
    "EthProofsClient",
    "NullProofRegistry",
    "ProofRegistry",
    "build_registry",
    # Pipeline
    "BlockTaskExecutor",
    "BlockOrchestrator",
    "RunStats",
]
