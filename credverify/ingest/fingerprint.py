"""
Content Fingerprinting
=======================

SHA-256 digests of uploaded files. The fingerprint is a pure function of
the bytes: identical content always yields the identical 64-character
lowercase hex digest.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

FINGERPRINT_LENGTH = 64
_READ_CHUNK = 1024 * 1024


def fingerprint_bytes(data: bytes) -> str:
    """SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def fingerprint_file(path: str | Path) -> str:
    """
    SHA-256 hex digest of a file's content, read in chunks.

    Raises:
        OSError: If the file cannot be read.
    """
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(_READ_CHUNK), b""):
            digest.update(block)
    return digest.hexdigest()
