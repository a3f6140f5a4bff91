"""
Tests for CLI logging setup.

Usage:
    pytest tests/test_logging_config.py -v
"""

import json
import logging

from src.orchestrator.logging_config import JsonLineFormatter, setup_logging


class TestJsonLineFormatter:

    def test_context_fields(self):
        record = logging.LogRecord(
            name="src.orchestrator.analysis_pipeline", level=logging.INFO,
            pathname=__file__, lineno=1, msg="Stage %s done", args=("classification",),
            exc_info=None,
        )
        record.run_id = "abc12345"
        record.duration = 0.12

        entry = json.loads(JsonLineFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["message"] == "Stage classification done"
        assert entry["run_id"] == "abc12345"
        assert entry["duration"] == 0.12
        assert "product" not in entry


class TestSetupLogging:

    def teardown_method(self):
        logging.getLogger().handlers.clear()

    def test_single_stderr_handler(self):
        setup_logging("DEBUG")
        setup_logging("DEBUG")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG

    def test_json_lines_on_stderr(self, capsys):
        setup_logging("INFO", json_output=True)
        logging.getLogger("src.reviews").info("hello", extra={"product": "Compression"})

        captured = capsys.readouterr()
        assert captured.out == ""
        entry = json.loads(captured.err.strip().splitlines()[-1])
        assert entry["message"] == "hello"
        assert entry["product"] == "Compression"

    def test_level_filters(self, capsys):
        setup_logging("WARNING")
        logging.getLogger("src.reviews").info("quiet")
        assert "quiet" not in capsys.readouterr().err
