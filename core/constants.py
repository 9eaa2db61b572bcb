# PATH: core/constants.py
"""
Constants for the prover orchestrator.

Defaults mirror what the node operators run in production:
- retry budget of 3 attempts starting at 1s backoff
- 1s settling delay between the websocket head and the HTTP read path
"""

from enum import Enum
from typing import Final

# Retry defaults for the HTTP gateway
DEFAULT_RPC_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_RPC_INITIAL_BACKOFF_MS: Final[int] = 1000
DEFAULT_RPC_BACKOFF_GROWTH: Final[float] = 2.0
DEFAULT_RPC_MAX_BACKOFF_MS: Final[int] = 30_000
DEFAULT_RPC_TIMEOUT_SECONDS: Final[float] = 30.0

# Websocket head lags the HTTP replicas by up to a second on most providers
DEFAULT_SETTLE_DELAY_SECONDS: Final[float] = 1.0

# JSON-RPC error codes that mean "try again later"
RPC_LIMIT_EXCEEDED_CODE: Final[int] = -32005
RETRYABLE_HTTP_STATUSES: Final[frozenset] = frozenset({429, 500, 502, 503, 504})

PAGER_DUTY_EVENTS_URL: Final[str] = "https://events.pagerduty.com/v2/enqueue"
DEFAULT_ALERT_SOURCE: Final[str] = "prover-ops"
DEFAULT_HTTP_TIMEOUT_SECONDS: Final[float] = 10.0


class ErrorCode(str, Enum):
    """Error codes carried by every ProverOpsError."""
    CONFIG_INVALID = "CONFIG_INVALID"
    NODE_CONNECTION_FAILED = "NODE_CONNECTION_FAILED"
    RPC_ERROR = "RPC_ERROR"
    RPC_RETRIES_EXHAUSTED = "RPC_RETRIES_EXHAUSTED"
    RPC_NOT_FOUND = "RPC_NOT_FOUND"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    REGISTRY_REPORT_FAILED = "REGISTRY_REPORT_FAILED"
    ALERT_DELIVERY_FAILED = "ALERT_DELIVERY_FAILED"
    UNKNOWN = "UNKNOWN"


class LoopState(str, Enum):
    """Orchestration loop states."""
    WAITING_FOR_READY_BLOCK = "WAITING_FOR_READY_BLOCK"
    EXECUTING = "EXECUTING"
    REPORTING = "REPORTING"
    ALERTING = "ALERTING"


class StrategyKind(str, Enum):
    """Bundled execution strategies selectable from the CLI."""
    EXECUTE_ONLY = "execute-only"
    COMMAND = "command"
