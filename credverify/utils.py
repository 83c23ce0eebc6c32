"""
CredVerify Utilities
=====================

Shared helper functions for logging, hashing, identifiers and text
normalization used across all modules.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import sys
import time
import uuid
from typing import Any

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def generate_record_id() -> str:
    """
    Generate a unique verification record ID.

    Format: cred-{timestamp}-{short_uuid}
    Example: cred-20250209-143022-a1b2c3d4
    """
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    short_id = uuid.uuid4().hex[:8]
    return f"cred-{timestamp}-{short_id}"


def utc_timestamp() -> str:
    """ISO 8601 UTC timestamp with second precision."""
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


# ── Hashing ────────────────────────────────────────────────────────

def compute_content_hash(obj: Any) -> str:
    """
    Compute a content-addressable hash for any JSON-serializable object.

    This is used for record integrity: the hash of the record content
    (excluding the hash field) is stored in the record.
    """
    canonical = json.dumps(obj, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


# ── Logging ────────────────────────────────────────────────────────

def setup_logging(
    level: str = "INFO",
    format_style: str = "text",
    run_id: str | None = None
) -> logging.Logger:
    """
    Configure structured logging for CredVerify.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format_style: "json" for structured logs, "text" for human-readable.
        run_id: Optional run ID to include in all log entries.

    Returns:
        Configured Logger instance.
    """
    logger = logging.getLogger("credverify")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)

    if format_style == "json":
        class JsonFormatter(logging.Formatter):
            def format(self, record):
                log_entry = {
                    "timestamp": self.formatTime(record),
                    "level": record.levelname,
                    "module": record.module,
                    "message": record.getMessage(),
                }
                if run_id:
                    log_entry["run_id"] = run_id
                if record.exc_info:
                    log_entry["exception"] = self.formatException(record.exc_info)
                return json.dumps(log_entry)

        handler.setFormatter(JsonFormatter())
    else:
        fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        if run_id:
            fmt = f"%(asctime)s | %(levelname)-8s | {run_id} | %(name)s | %(message)s"
        handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))

    logger.addHandler(handler)

    # Third-party clients are chatty at INFO
    for noisy in ("aiohttp", "httpx", "openai", "web3", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


# ── Text Processing Helpers ────────────────────────────────────────

def normalize_token(text: str) -> str:
    """Lowercase and drop every non-alphanumeric character."""
    return _NON_ALNUM.sub("", text.lower())


def truncate_chars(text: str, max_chars: int) -> str:
    """Cut text to at most max_chars characters."""
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars]

