"""
core - Core utilities and models for the prover orchestrator.

This package contains:
- models.py: Block, artifact and outcome models
- constants.py: Enums and defaults
- exceptions.py: Typed exceptions with error codes
- time.py: Clock helpers
- logging.py: Structured logging
"""

from core.constants import ErrorCode, LoopState, StrategyKind
from core.exceptions import (
    AlertDeliveryError,
    ConfigError,
    ExecutionError,
    NodeConnectionError,
    ProverOpsError,
    RegistryReportError,
    RpcError,
)
from core.logging import get_logger, setup_logging
from core.models import (
    BlockData,
    BlockHeader,
    ExecutionOutcome,
    Failure,
    ProofArtifact,
    Success,
)

__all__ = [
    # Constants
    "ErrorCode",
    "LoopState",
    "StrategyKind",
    # Exceptions
    "AlertDeliveryError",
    "ConfigError",
    "ExecutionError",
    "NodeConnectionError",
    "ProverOpsError",
    "RegistryReportError",
    "RpcError",
    # Models
    "BlockData",
    "BlockHeader",
    "ExecutionOutcome",
    "Failure",
    "ProofArtifact",
    "Success",
    # Logging
    "get_logger",
    "setup_logging",
]
