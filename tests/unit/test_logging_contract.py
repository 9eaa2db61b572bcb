# PATH: tests/unit/test_logging_contract.py
"""
Tests for the logging contract.

No kwargs to logger calls; context goes only through extra={"context": {...}}.
"""

import ast
import json
import logging
import unittest
from pathlib import Path
from typing import Any, Dict, List

from core.logging import ConsoleFormatter, StructuredFormatter, parse_log_level

PROJECT_ROOT = Path(__file__).parent.parent.parent
SOURCE_PATTERNS = [
    "chains/*.py",
    "config/*.py",
    "core/*.py",
    "execution/*.py",
    "monitoring/*.py",
    "run_prover.py",
]


class TestLoggingContractEnforcement(unittest.TestCase):
    """AST-based tests for logging contract."""

    ALLOWED_KWARGS = {"exc_info", "extra", "stack_info", "stacklevel"}

    def _find_logger_violations(self, source_code: str) -> List[Dict[str, Any]]:
        """Find logger calls with invalid kwargs using AST."""
        violations = []
        tree = ast.parse(source_code)

        for node in ast.walk(tree):
            if not isinstance(node, ast.Call):
                continue
            if not isinstance(node.func, ast.Attribute):
                continue

            method_name = node.func.attr
            if method_name not in ("debug", "info", "warning", "error", "critical", "exception"):
                continue

            obj = node.func.value
            is_logger = False
            if isinstance(obj, ast.Name):
                is_logger = "log" in obj.id.lower()
            elif isinstance(obj, ast.Attribute):
                is_logger = "log" in obj.attr.lower()
            if not is_logger:
                continue

            for kw in node.keywords:
                if kw.arg and kw.arg not in self.ALLOWED_KWARGS:
                    violations.append({
                        "line": node.lineno,
                        "method": method_name,
                        "invalid_kwarg": kw.arg,
                    })

        return violations

    def test_sources_have_no_invalid_kwargs(self):
        """Every module logs through extra={"context": ...} only."""
        scanned = 0
        msg = ""
        for pattern in SOURCE_PATTERNS:
            for filepath in sorted(PROJECT_ROOT.glob(pattern)):
                source = filepath.read_text(encoding="utf-8")
                scanned += 1
                for v in self._find_logger_violations(source):
                    msg += (
                        f"  {filepath.relative_to(PROJECT_ROOT)}:{v['line']}: "
                        f"logger.{v['method']}(..., {v['invalid_kwarg']}=...)\n"
                    )

        self.assertGreater(scanned, 0, "No files scanned!")
        if msg:
            self.fail("Found logging violations:\n" + msg)

    def test_detector_flags_bad_kwargs(self):
        violations = self._find_logger_violations('logger.info("x", block=1)\n')
        self.assertEqual(violations[0]["invalid_kwarg"], "block")


class TestFormatters(unittest.TestCase):
    """Formatter output for records carrying context."""

    def _record(self, context=None):
        record = logging.LogRecord(
            name="execution.executor",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="Error handling block %d",
            args=(100,),
            exc_info=None,
        )
        if context is not None:
            record.context = context
        return record

    def test_structured_formatter_is_json(self):
        line = StructuredFormatter().format(self._record({"block_number": 100}))
        data = json.loads(line)

        self.assertEqual(data["level"], "ERROR")
        self.assertEqual(data["logger"], "execution.executor")
        self.assertEqual(data["message"], "Error handling block 100")
        self.assertEqual(data["context"], {"block_number": 100})

    def test_console_formatter_truncates_context(self):
        context = {f"k{i}": i for i in range(6)}
        line = ConsoleFormatter().format(self._record(context))

        self.assertIn("Error handling block 100", line)
        self.assertIn("k0=0, k1=1, k2=2, k3=3", line)
        self.assertIn("(+2 more)", line)
        self.assertNotIn("k5=5", line)

    def test_console_formatter_without_context(self):
        line = ConsoleFormatter().format(self._record())
        self.assertTrue(line.endswith("Error handling block 100"))


class TestParseLogLevel(unittest.TestCase):

    def test_names_and_numbers(self):
        self.assertEqual(parse_log_level("debug"), logging.DEBUG)
        self.assertEqual(parse_log_level("WARNING"), logging.WARNING)
        self.assertEqual(parse_log_level(logging.ERROR), logging.ERROR)

    def test_unknown_name_rejected(self):
        with self.assertRaises(ValueError):
            parse_log_level("chatty")

    def test_empty_defaults_to_info(self):
        self.assertEqual(parse_log_level(""), logging.INFO)
        self.assertEqual(parse_log_level(None), logging.INFO)


class TestLoggingContextCapture(unittest.TestCase):
    """Context passed via extra lands on the record."""

    def setUp(self):
        self.captured_records = []

        class CapturingHandler(logging.Handler):
            def __init__(self, records_list):
                super().__init__()
                self.records = records_list

            def emit(self, record):
                self.records.append(record)

        self.logger = logging.getLogger(f"test_capture_{id(self)}")
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers = []
        self.logger.addHandler(CapturingHandler(self.captured_records))

    def test_context_captured_in_record(self):
        self.logger.info(
            "Block 100 processed",
            extra={"context": {"block_number": 100, "duration_ms": 12}}
        )

        record = self.captured_records[0]
        self.assertEqual(record.context["block_number"], 100)
        self.assertEqual(record.context["duration_ms"], 12)

    def test_exc_info_with_context(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            self.logger.error(
                "Caught error",
                exc_info=True,
                extra={"context": {"operation": "test"}}
            )

        record = self.captured_records[0]
        self.assertIsNotNone(record.exc_info)
        self.assertEqual(record.context["operation"], "test")


if __name__ == "__main__":
    unittest.main()
