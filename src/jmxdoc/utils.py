"""Utility functions for jmxdoc.

Small I/O and logging helpers used by the session and CLI layers.

Key Functions:
--------------
- compute_hash: Deterministic SHA256 of a string or a JSON-compatible dict
- write_json: JSON persistence with consistent formatting
- configure_logger: Stream handler setup from the [logging] settings

Example:
--------
>>> from jmxdoc.utils import compute_hash
>>> len(compute_hash({"version": 4, "perts": []}))
64
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

PLAIN_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def compute_hash(data: Union[str, Dict[str, Any]]) -> str:
    """Compute deterministic SHA256 hash of input data.

    Dictionaries are canonicalized (sorted keys, compact separators) so that
    two documents with the same content hash equally regardless of key order.

    Returns:
        SHA256 hex digest (64 characters)
    """
    if isinstance(data, dict):
        data = json.dumps(data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def write_json(data: Dict[str, Any], path: Union[str, Path], indent: int = 2, mkdir: bool = False) -> None:
    """Write ``data`` as JSON followed by a trailing newline.

    Args:
        data: JSON-compatible mapping
        path: Output file path
        indent: JSON indentation (0 puts every element on its own line)
        mkdir: Create missing parent directories first
    """
    path = Path(path)
    if mkdir:
        path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent)
        f.write("\n")


class JsonFormatter(logging.Formatter):
    """One JSON object per record (timestamp, level, name, message)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logger(name: str, level: str = "INFO", structured: bool = False) -> logging.Logger:
    """Configure logger ``name`` with a single stream handler.

    Args:
        name: Logger name (``"jmxdoc"`` configures every module logger)
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured: Emit JSON records instead of plain text

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Replace handlers from a previous call
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if structured else logging.Formatter(PLAIN_LOG_FORMAT))
    logger.addHandler(handler)
    return logger
