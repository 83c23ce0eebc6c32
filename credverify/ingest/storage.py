"""
Upload File Store
==================

Stores uploaded bytes on local disk under a collision-resistant name and
hands back a reference. The pipeline only ever sees the reference; the
file is owned by the request until a record is persisted, and is deleted
if the request fails.

Naming follows ``<epoch_ms>-<random>.<ext>`` so that the original
filename never reaches the filesystem.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from credverify.errors import EmptyUploadError, UploadReadError, UploadTooLargeError

logger = logging.getLogger("credverify.ingest.storage")


@dataclass(frozen=True)
class StoredFile:
    """Handle to bytes accepted by the store."""
    ref: str
    path: Path
    original_name: str
    size: int


class FileStore:
    """
    Disk-backed store for uploaded credential files.

    Usage:
        store = FileStore(Path("uploads"))
        stored = store.store(data, "certificate.pdf")
        path = store.resolve(stored.ref)
        store.delete(stored.ref)

    Args:
        root: Directory holding uploaded files (created on demand).
        max_bytes: Uploads larger than this are refused.
    """

    def __init__(self, root: Path, max_bytes: int = 10 * 1024 * 1024):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def store(self, data: bytes, original_name: str) -> StoredFile:
        """
        Persist uploaded bytes and return a handle to them.

        Raises:
            EmptyUploadError: If data is empty.
            UploadTooLargeError: If data exceeds max_bytes.
        """
        if not data:
            raise EmptyUploadError("Uploaded file is empty")
        if len(data) > self.max_bytes:
            raise UploadTooLargeError(
                f"Uploaded file is {len(data)} bytes, limit is {self.max_bytes}"
            )

        self.root.mkdir(parents=True, exist_ok=True)
        suffix = Path(original_name).suffix.lower()
        ref = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"
        path = self.root / ref
        path.write_bytes(data)

        logger.info(f"Stored upload {original_name!r} as {ref} ({len(data)} bytes)")
        return StoredFile(ref=ref, path=path, original_name=original_name, size=len(data))

    def resolve(self, ref: str) -> Path:
        """
        Map a reference to its on-disk path.

        Raises:
            UploadReadError: If the reference escapes the store or the file is missing.
        """
        path = (self.root / ref).resolve()
        if path.parent != self.root.resolve():
            raise UploadReadError(f"Invalid file reference: {ref!r}")
        if not path.is_file():
            raise UploadReadError(f"Uploaded file not found: {ref!r}")
        return path

    def delete(self, ref: str) -> bool:
        """
        Remove a stored file. Best-effort: failures are logged, not raised.

        Returns:
            True if a file was removed.
        """
        path = self.root / Path(ref).name
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete stored file {ref}: {e}")
            return False
        logger.info(f"Deleted stored file {ref}")
        return True
