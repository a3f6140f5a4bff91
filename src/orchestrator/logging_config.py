"""
Logging Setup
=============

A single stderr handler for the CLI, so stdout stays reserved for
`analyze --json` output. Plain text by default; one JSON object per
line with `--log-json`.

Pipeline context passed through `extra=` (run_id, stage, product, ...)
is carried into the JSON lines.
"""

import json
import logging
import sys

CONTEXT_FIELDS = ("run_id", "stage", "product", "segment", "duration")

TEXT_FORMAT = "%(levelname)-7s %(name)s: %(message)s"


class JsonLineFormatter(logging.Formatter):
    """Renders a record as one JSON line with its pipeline context."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (name, getattr(record, name))
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Handler:
    """Route every logger to stderr at the given level, replacing prior handlers."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonLineFormatter() if json_output else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())
    return handler
