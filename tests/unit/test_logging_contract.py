"""
Tests for the logging contract.

Contextual fields go only through extra={"context": {...}}; logger calls
never take arbitrary kwargs.
"""

import ast
import json
import logging
import unittest
from pathlib import Path
from typing import Any, Dict, List

from core.logging import (
    ConsoleFormatter,
    JSONFormatter,
    clear_global_context,
    get_logger,
    log_error,
    set_global_context,
)

PROJECT_ROOT = Path(__file__).parent.parent.parent
SOURCE_DIRS = ["core", "chains", "config", "dex", "execution", "strategy"]


class TestLoggingContractEnforcement(unittest.TestCase):
    """AST-based tests for logging contract."""

    ALLOWED_KWARGS = {"exc_info", "extra", "stack_info", "stacklevel"}

    def _find_logger_violations(self, source_code: str) -> List[Dict[str, Any]]:
        violations = []
        tree = ast.parse(source_code)

        for node in ast.walk(tree):
            if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Attribute):
                continue
            if node.func.attr not in ("debug", "info", "warning", "error", "critical", "exception"):
                continue

            obj = node.func.value
            if isinstance(obj, ast.Name):
                is_logger = "log" in obj.id.lower()
            elif isinstance(obj, ast.Attribute):
                is_logger = "log" in obj.attr.lower()
            else:
                is_logger = False
            if not is_logger:
                continue

            for kw in node.keywords:
                if kw.arg and kw.arg not in self.ALLOWED_KWARGS:
                    violations.append({
                        "line": node.lineno,
                        "method": node.func.attr,
                        "invalid_kwarg": kw.arg,
                    })
        return violations

    def test_detects_violation(self):
        violations = self._find_logger_violations('logger.info("x", order_index=1)')
        self.assertEqual(len(violations), 1)
        self.assertEqual(violations[0]["invalid_kwarg"], "order_index")

    def test_source_tree_has_no_invalid_kwargs(self):
        files = [PROJECT_ROOT / "run_clear.py"]
        for directory in SOURCE_DIRS:
            files.extend((PROJECT_ROOT / directory).rglob("*.py"))

        msg = ""
        for filepath in files:
            source = filepath.read_text(encoding="utf-8")
            for v in self._find_logger_violations(source):
                msg += f"  {filepath.name}:{v['line']}: logger.{v['method']}(..., {v['invalid_kwarg']}=...)\n"
        if msg:
            self.fail(f"Logging violations:\n{msg}")


class TestLoggingContextCapture(unittest.TestCase):
    """Context flows from adapters and extra into log records."""

    def setUp(self):
        self.captured_records = []

        class CapturingHandler(logging.Handler):
            def __init__(self, records_list):
                super().__init__()
                self.records = records_list

            def emit(self, record):
                self.records.append(record)

        self.name = f"test_capture_{id(self)}"
        base = logging.getLogger(self.name)
        base.setLevel(logging.DEBUG)
        base.handlers = []
        base.propagate = False
        base.addHandler(CapturingHandler(self.captured_records))

    def tearDown(self):
        clear_global_context()

    def test_adapter_merges_default_and_call_context(self):
        logger = get_logger(self.name, order_index=2)
        logger.info("Quote received", extra={"context": {"price": "0.6"}})

        record = self.captured_records[0]
        self.assertEqual(record.context, {"order_index": 2, "price": "0.6"})

    def test_call_context_overrides_default(self):
        logger = get_logger(self.name, pair="A/B")
        logger.info("x", extra={"context": {"pair": "C/D"}})
        self.assertEqual(self.captured_records[0].context["pair"], "C/D")

    def test_log_error_sets_error_code(self):
        log_error(get_logger(self.name), "QUOTE_EMPTY", "Empty quote response", order_index=0)

        record = self.captured_records[0]
        self.assertEqual(record.levelno, logging.ERROR)
        self.assertEqual(record.getMessage(), "[QUOTE_EMPTY] Empty quote response")
        self.assertEqual(record.context["error_code"], "QUOTE_EMPTY")
        self.assertEqual(record.context["order_index"], 0)

    def test_json_formatter_includes_global_context(self):
        set_global_context(chain_id=137)
        get_logger(self.name).info("Order cleared", extra={"context": {"tx": "0xabc"}})

        entry = json.loads(JSONFormatter().format(self.captured_records[0]))
        self.assertEqual(entry["message"], "Order cleared")
        self.assertEqual(entry["level"], "INFO")
        self.assertEqual(entry["context"], {"chain_id": 137, "tx": "0xabc"})

    def test_console_formatter_appends_context(self):
        get_logger(self.name).info("Quote amount", extra={"context": {"amount": "1000.0"}})

        line = ConsoleFormatter().format(self.captured_records[0])
        self.assertIn("Quote amount", line)
        self.assertIn("amount=1000.0", line)


if __name__ == "__main__":
    unittest.main()
