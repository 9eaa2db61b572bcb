# PATH: config/__init__.py
"""
Configuration loading for the prover orchestrator.

Settings are resolved once at startup into a frozen ProverConfig:
  config/prover.yaml (or --config)  <  environment / .env  <  CLI flags
The CLI layer (run_prover.py) takes care of env + flags; this module merges
them over the YAML defaults and validates the result.
"""

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from core.constants import (
    DEFAULT_ALERT_SOURCE,
    DEFAULT_RPC_BACKOFF_GROWTH,
    DEFAULT_RPC_INITIAL_BACKOFF_MS,
    DEFAULT_RPC_MAX_ATTEMPTS,
    DEFAULT_RPC_MAX_BACKOFF_MS,
    DEFAULT_RPC_TIMEOUT_SECONDS,
    DEFAULT_SETTLE_DELAY_SECONDS,
    StrategyKind,
)
from core.exceptions import ConfigError
from core.logging import parse_log_level


CONFIG_DIR = Path(__file__).parent
DEFAULT_CONFIG_FILE = CONFIG_DIR / "prover.yaml"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy shared read-only by every gateway request.

    max_attempts is the total number of attempts per call; 0 still makes
    one attempt. Delay before retry n is
    min(initial_backoff_ms * backoff_growth ** (n - 1), max_backoff_ms).
    """
    max_attempts: int = DEFAULT_RPC_MAX_ATTEMPTS
    initial_backoff_ms: int = DEFAULT_RPC_INITIAL_BACKOFF_MS
    backoff_growth: float = DEFAULT_RPC_BACKOFF_GROWTH
    max_backoff_ms: int = DEFAULT_RPC_MAX_BACKOFF_MS

    @property
    def attempts(self) -> int:
        return max(1, self.max_attempts)


@dataclass(frozen=True)
class AlertConfig:
    """Paging settings. No routing key means alerting is a no-op."""
    routing_key: Optional[str] = None
    source: str = DEFAULT_ALERT_SOURCE

    @property
    def enabled(self) -> bool:
        return bool(self.routing_key)


@dataclass(frozen=True)
class RegistryConfig:
    """eth-proofs registry settings. Reporting is on only with endpoint + token."""
    endpoint: Optional[str] = None
    api_token: Optional[str] = None
    cluster_id: Optional[int] = None

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint and self.api_token)


@dataclass(frozen=True)
class ProverConfig:
    """Full, validated process configuration."""
    ws_rpc_url: str
    http_rpc_url: str
    block_interval: int
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    alert: AlertConfig = field(default_factory=AlertConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    settle_delay_seconds: float = DEFAULT_SETTLE_DELAY_SECONDS
    rpc_timeout_seconds: float = DEFAULT_RPC_TIMEOUT_SECONDS
    strategy: StrategyKind = StrategyKind.EXECUTE_ONLY
    strategy_command: Tuple[str, ...] = ()
    log_level: str = "INFO"
    log_json: bool = False

    def summary(self) -> Dict[str, Any]:
        """Loggable view without secrets."""
        return {
            "ws_rpc_url": self.ws_rpc_url,
            "http_rpc_url": self.http_rpc_url,
            "block_interval": self.block_interval,
            "settle_delay_seconds": self.settle_delay_seconds,
            "rpc_max_attempts": self.retry.max_attempts,
            "rpc_initial_backoff_ms": self.retry.initial_backoff_ms,
            "rpc_backoff_growth": self.retry.backoff_growth,
            "strategy": self.strategy.value,
            "alerting": self.alert.enabled,
            "registry": self.registry.enabled,
        }


def load_yaml(path: Path) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: File to read

    Returns:
        Parsed YAML as dict
    """
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


def _flatten_file_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map the nested YAML layout onto the flat CLI option names."""
    flat = {k: v for k, v in data.items() if k not in ("retry", "alert", "registry")}

    for key, value in (data.get("retry") or {}).items():
        flat[f"rpc_{key}"] = value
    alert = data.get("alert") or {}
    if "routing_key" in alert:
        flat["pager_duty_integration_key"] = alert["routing_key"]
    if "source" in alert:
        flat["alert_source"] = alert["source"]
    for key, value in (data.get("registry") or {}).items():
        flat[f"eth_proofs_{key}"] = value

    return flat


def _as_int(values: Dict[str, Any], key: str, errors: List[str], default: Any = None) -> Any:
    raw = values.get(key, default)
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        errors.append(f"{key} must be an integer, got {raw!r}")
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        errors.append(f"{key} must be an integer, got {raw!r}")
        return default


def _as_float(values: Dict[str, Any], key: str, errors: List[str], default: float) -> float:
    raw = values.get(key, default)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except (TypeError, ValueError):
        errors.append(f"{key} must be a number, got {raw!r}")
        return default


def _as_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    return bool(raw)


def _check_url(url: Optional[str], key: str, schemes: Tuple[str, ...], errors: List[str]) -> None:
    if not url:
        errors.append(f"{key} is required")
    elif not url.startswith(schemes):
        errors.append(f"{key} must start with one of {', '.join(schemes)}, got {url!r}")


def build_prover_config(
    overrides: Optional[Dict[str, Any]] = None,
    config_path: Optional[Path] = None,
) -> ProverConfig:
    """
    Merge YAML defaults with CLI/env overrides and validate.

    Args:
        overrides: Flat settings (None values are ignored)
        config_path: YAML file; defaults to config/prover.yaml when present

    Returns:
        Frozen ProverConfig

    Raises:
        ConfigError: listing every invalid or missing setting
    """
    if config_path is not None:
        values = _flatten_file_values(load_yaml(config_path))
    elif DEFAULT_CONFIG_FILE.exists():
        values = _flatten_file_values(load_yaml(DEFAULT_CONFIG_FILE))
    else:
        values = {}

    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    errors: List[str] = []

    ws_rpc_url = values.get("ws_rpc_url")
    http_rpc_url = values.get("http_rpc_url")
    _check_url(ws_rpc_url, "ws_rpc_url", ("ws://", "wss://"), errors)
    _check_url(http_rpc_url, "http_rpc_url", ("http://", "https://"), errors)

    block_interval = None
    if values.get("block_interval") in (None, ""):
        errors.append("block_interval is required")
    else:
        block_interval = _as_int(values, "block_interval", errors)
    if block_interval is not None and block_interval <= 0:
        errors.append(f"block_interval must be a positive integer, got {block_interval}")

    retry = RetryPolicy(
        max_attempts=_as_int(values, "rpc_max_attempts", errors, DEFAULT_RPC_MAX_ATTEMPTS),
        initial_backoff_ms=_as_int(values, "rpc_initial_backoff_ms", errors, DEFAULT_RPC_INITIAL_BACKOFF_MS),
        backoff_growth=_as_float(values, "rpc_backoff_growth", errors, DEFAULT_RPC_BACKOFF_GROWTH),
        max_backoff_ms=_as_int(values, "rpc_max_backoff_ms", errors, DEFAULT_RPC_MAX_BACKOFF_MS),
    )
    if retry.max_attempts < 0:
        errors.append(f"rpc_max_attempts must be >= 0, got {retry.max_attempts}")
    if retry.initial_backoff_ms < 0:
        errors.append(f"rpc_initial_backoff_ms must be >= 0, got {retry.initial_backoff_ms}")
    if retry.backoff_growth < 1.0:
        errors.append(f"rpc_backoff_growth must be >= 1.0, got {retry.backoff_growth}")
    if retry.max_backoff_ms < retry.initial_backoff_ms:
        errors.append("rpc_max_backoff_ms must be >= rpc_initial_backoff_ms")

    settle_delay = _as_float(values, "settle_delay_seconds", errors, DEFAULT_SETTLE_DELAY_SECONDS)
    if settle_delay < 0:
        errors.append(f"settle_delay_seconds must be >= 0, got {settle_delay}")

    rpc_timeout = _as_float(values, "rpc_timeout_seconds", errors, DEFAULT_RPC_TIMEOUT_SECONDS)
    if rpc_timeout <= 0:
        errors.append(f"rpc_timeout_seconds must be > 0, got {rpc_timeout}")

    strategy = StrategyKind.EXECUTE_ONLY
    raw_strategy = values.get("strategy") or StrategyKind.EXECUTE_ONLY.value
    try:
        strategy = StrategyKind(raw_strategy)
    except ValueError:
        choices = ", ".join(k.value for k in StrategyKind)
        errors.append(f"strategy must be one of {choices}, got {raw_strategy!r}")

    raw_command = values.get("strategy_command") or ()
    if isinstance(raw_command, str):
        strategy_command = tuple(shlex.split(raw_command))
    else:
        strategy_command = tuple(str(part) for part in raw_command)
    if strategy == StrategyKind.COMMAND and not strategy_command:
        errors.append("strategy_command is required when strategy is 'command'")

    alert = AlertConfig(
        routing_key=values.get("pager_duty_integration_key") or None,
        source=values.get("alert_source") or DEFAULT_ALERT_SOURCE,
    )

    registry = RegistryConfig(
        endpoint=(values.get("eth_proofs_endpoint") or "").rstrip("/") or None,
        api_token=values.get("eth_proofs_api_token") or None,
        cluster_id=_as_int(values, "eth_proofs_cluster_id", errors),
    )

    log_level = str(values.get("log_level") or "INFO").strip().upper()
    try:
        parse_log_level(log_level)
    except ValueError:
        errors.append(f"log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL, got {log_level!r}")

    if errors:
        raise ConfigError(
            "Invalid configuration: " + "; ".join(errors),
            details={"errors": errors},
        )

    return ProverConfig(
        ws_rpc_url=ws_rpc_url,
        http_rpc_url=http_rpc_url,
        block_interval=block_interval,
        retry=retry,
        alert=alert,
        registry=registry,
        settle_delay_seconds=settle_delay,
        rpc_timeout_seconds=rpc_timeout,
        strategy=strategy,
        strategy_command=strategy_command,
        log_level=log_level,
        log_json=_as_bool(values.get("log_json", False)),
    )
