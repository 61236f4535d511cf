"""
contextengine.core.logging — JSON log lines on stderr.

The stdio transport owns stdout, so every handler installed here
writes to stderr.  With ``structured_logging: true`` in the config the
server logs one JSON object per line, which MCP clients that capture
server stderr can parse.
"""

from __future__ import annotations

import json
import logging
import sys

#: ``extra=`` keys copied into the JSON object when a record carries them.
CONTEXT_FIELDS = ("tool", "path")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Always has ``ts``, ``level``, ``logger``, ``msg``, ``module``,
    ``func`` and ``line``; adds ``tool``/``path`` when they were passed
    via ``extra=`` and ``exception`` when the record has ``exc_info``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S")
            + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_logging(
    structured: bool = False,
    level: str = "INFO",
    logger_name: str = "contextengine",
) -> None:
    """Set the package logger's level and, if *structured*, its handler.

    Unknown level names fall back to INFO.  In structured mode the
    logger gets a single stderr handler with ``StructuredFormatter`` and
    stops propagating, so records are not printed twice when the CLI
    has already called ``logging.basicConfig``.  Plain mode leaves
    handlers alone.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not structured:
        return

    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.propagate = False
