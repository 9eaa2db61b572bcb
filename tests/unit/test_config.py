# PATH: tests/unit/test_config.py
"""
Unit tests for configuration loading and validation.
"""

import unittest
from pathlib import Path
import tempfile

from config import (
    CONFIG_DIR,
    AlertConfig,
    RetryPolicy,
    build_prover_config,
    load_yaml,
)
from core.constants import StrategyKind
from core.exceptions import ConfigError

REQUIRED = {
    "ws_rpc_url": "wss://node.test/ws",
    "http_rpc_url": "https://node.test/rpc",
    "block_interval": 100,
}


class TestConfigLoading(unittest.TestCase):
    """Tests for YAML defaults."""

    def test_default_file_loads(self):
        data = load_yaml(CONFIG_DIR / "prover.yaml")
        self.assertIsInstance(data, dict)
        self.assertEqual(data["retry"]["max_attempts"], 3)

    def test_missing_file_raises(self):
        with self.assertRaises(ConfigError):
            load_yaml(CONFIG_DIR / "does_not_exist.yaml")

    def test_custom_file_values_used(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "prover.yaml"
            path.write_text(
                "ws_rpc_url: ws://localhost:8546\n"
                "http_rpc_url: http://localhost:8545\n"
                "block_interval: 10\n"
                "retry:\n  max_attempts: 5\n"
                "alert:\n  routing_key: rk-file\n"
                "registry:\n  endpoint: https://registry.test/\n  api_token: t\n  cluster_id: 3\n"
            )
            config = build_prover_config({}, path)

        self.assertEqual(config.block_interval, 10)
        self.assertEqual(config.retry.max_attempts, 5)
        self.assertEqual(config.alert.routing_key, "rk-file")
        self.assertEqual(config.registry.endpoint, "https://registry.test")
        self.assertTrue(config.registry.enabled)

    def test_overrides_beat_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "prover.yaml"
            path.write_text("block_interval: 10\nretry:\n  max_attempts: 5\n")
            config = build_prover_config({**REQUIRED, "rpc_max_attempts": 1, "block_interval": None}, path)

        self.assertEqual(config.retry.max_attempts, 1)
        self.assertEqual(config.block_interval, 10)


class TestConfigValidation(unittest.TestCase):
    """Tests for fail-fast validation."""

    def test_defaults(self):
        config = build_prover_config(REQUIRED)
        self.assertEqual(config.retry, RetryPolicy())
        self.assertEqual(config.settle_delay_seconds, 1.0)
        self.assertEqual(config.strategy, StrategyKind.EXECUTE_ONLY)
        self.assertFalse(config.alert.enabled)
        self.assertFalse(config.registry.enabled)
        self.assertEqual(config.log_level, "INFO")

    def test_string_values_from_environment(self):
        config = build_prover_config({
            **REQUIRED,
            "block_interval": "25",
            "rpc_backoff_growth": "1.5",
            "log_json": "true",
        })
        self.assertEqual(config.block_interval, 25)
        self.assertEqual(config.retry.backoff_growth, 1.5)
        self.assertTrue(config.log_json)

    def test_missing_block_interval(self):
        with self.assertRaises(ConfigError) as ctx:
            build_prover_config({**REQUIRED, "block_interval": None})
        self.assertIn("block_interval is required", str(ctx.exception))

    def test_zero_and_negative_interval_rejected(self):
        for value in (0, -10):
            with self.assertRaises(ConfigError):
                build_prover_config({**REQUIRED, "block_interval": value})

    def test_non_integer_interval_rejected(self):
        with self.assertRaises(ConfigError):
            build_prover_config({**REQUIRED, "block_interval": "ten"})

    def test_bad_urls_rejected(self):
        with self.assertRaises(ConfigError) as ctx:
            build_prover_config({**REQUIRED, "ws_rpc_url": "https://node.test", "http_rpc_url": ""})
        errors = ctx.exception.details["errors"]
        self.assertEqual(len(errors), 2)

    def test_retry_parameters_validated(self):
        with self.assertRaises(ConfigError):
            build_prover_config({**REQUIRED, "rpc_max_attempts": -1})
        with self.assertRaises(ConfigError):
            build_prover_config({**REQUIRED, "rpc_backoff_growth": 0.5})

    def test_command_strategy_requires_command(self):
        with self.assertRaises(ConfigError):
            build_prover_config({**REQUIRED, "strategy": "command"})

        config = build_prover_config({**REQUIRED, "strategy": "command", "strategy_command": "prover --fast"})
        self.assertEqual(config.strategy_command, ("prover", "--fast"))

    def test_unknown_strategy_rejected(self):
        with self.assertRaises(ConfigError):
            build_prover_config({**REQUIRED, "strategy": "magic"})

    def test_log_level_normalised(self):
        config = build_prover_config({**REQUIRED, "log_level": " debug "})
        self.assertEqual(config.log_level, "DEBUG")

    def test_unknown_log_level_rejected(self):
        with self.assertRaises(ConfigError) as ctx:
            build_prover_config({**REQUIRED, "log_level": "chatty"})
        self.assertIn("log_level", str(ctx.exception))

    def test_routing_key_enables_alerting(self):
        config = build_prover_config({**REQUIRED, "pager_duty_integration_key": "rk"})
        self.assertEqual(config.alert, AlertConfig(routing_key="rk"))
        self.assertTrue(config.alert.enabled)

    def test_summary_hides_secrets(self):
        config = build_prover_config({
            **REQUIRED,
            "pager_duty_integration_key": "rk-secret",
            "eth_proofs_endpoint": "https://registry.test",
            "eth_proofs_api_token": "token-secret",
        })
        rendered = str(config.summary())
        self.assertNotIn("rk-secret", rendered)
        self.assertNotIn("token-secret", rendered)


class TestRetryPolicy(unittest.TestCase):

    def test_zero_attempts_means_one(self):
        self.assertEqual(RetryPolicy(max_attempts=0).attempts, 1)


if __name__ == "__main__":
    unittest.main()
