# PATH: core/exceptions.py
"""
Typed exceptions for the prover orchestrator.

Fatal at startup: ConfigError, NodeConnectionError.
Per block: RpcError, ExecutionError (turned into a Failure outcome).
Best-effort side channels: RegistryReportError, AlertDeliveryError (logged only).
"""

from typing import Optional

from core.constants import ErrorCode


class ProverOpsError(Exception):
    """Base exception for the orchestrator."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"


class ConfigError(ProverOpsError):
    """Invalid or missing settings."""
    code = ErrorCode.CONFIG_INVALID


class NodeConnectionError(ProverOpsError):
    """Could not reach the node or establish the head subscription."""
    code = ErrorCode.NODE_CONNECTION_FAILED


class RpcError(ProverOpsError):
    """RPC call failed (non-transient, or transient with retries exhausted)."""
    code = ErrorCode.RPC_ERROR


class ExecutionError(ProverOpsError):
    """The execution strategy failed for a block."""
    code = ErrorCode.EXECUTION_FAILED


class RegistryReportError(ProverOpsError):
    """Proof registry rejected or never received a report."""
    code = ErrorCode.REGISTRY_REPORT_FAILED


class AlertDeliveryError(ProverOpsError):
    """Paging backend did not accept the alert."""
    code = ErrorCode.ALERT_DELIVERY_FAILED
