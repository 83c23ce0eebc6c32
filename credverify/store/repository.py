"""
Credential Store
=================

JSON-file repository for VerificationRecords. Records are written once
(a record id can only be saved a single time) and are never updated in
place; deleting a credential removes its record and its uploaded file.

The only access policy is a single ownership check on delete and on
owner-scoped listings.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from collections import defaultdict
from pathlib import Path
from typing import Optional

from credverify.errors import CredentialNotFoundError, RecordPersistError
from credverify.ingest.storage import FileStore
from credverify.schemas.record import VerificationRecord

logger = logging.getLogger("credverify.store.repository")


class CredentialStore:
    """
    Append-only store of sealed verification records.

    Usage:
        store = CredentialStore(Path("data/credentials.json"))
        store.save(record)
        mine = store.list_for_owner("learner-42")
        store.delete(record.record_id, "learner-42", file_store)

    Args:
        path: JSON file holding all records (created on first save).
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    # ── Reads ──────────────────────────────────────────────────────

    def _load(self) -> list[VerificationRecord]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return [VerificationRecord.model_validate(item) for item in data]

    def list_all(self) -> list[VerificationRecord]:
        """All records, newest first."""
        return list(reversed(self._load()))

    def get(self, record_id: str) -> Optional[VerificationRecord]:
        """Look up a record by ID. Returns None if not found."""
        for record in self._load():
            if record.record_id == record_id:
                return record
        return None

    def list_for_owner(self, owner_id: str) -> list[VerificationRecord]:
        """Records belonging to one owner, newest first."""
        return [r for r in self.list_all() if r.owner_id == owner_id]

    def group_by_owner(self) -> dict[str, list[VerificationRecord]]:
        """All owned records grouped by owner, newest first within each group."""
        grouped: dict[str, list[VerificationRecord]] = defaultdict(list)
        for record in self.list_all():
            if record.owner_id is not None:
                grouped[record.owner_id].append(record)
        return dict(grouped)

    # ── Writes ─────────────────────────────────────────────────────

    def _write(self, records: list[VerificationRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(
                [r.model_dump(mode="json") for r in records],
                f,
                indent=2,
                ensure_ascii=False,
            )
        os.replace(tmp, self.path)

    def save(self, record: VerificationRecord) -> None:
        """
        Persist a new record.

        Raises:
            RecordPersistError: If the id already exists or the write fails.
        """
        with self._lock:
            try:
                records = self._load()
                if any(r.record_id == record.record_id for r in records):
                    raise RecordPersistError(f"Record {record.record_id} already persisted")
                records.append(record)
                self._write(records)
            except RecordPersistError:
                raise
            except (OSError, ValueError) as e:
                raise RecordPersistError(f"Cannot persist record {record.record_id}: {e}") from e

        logger.info(f"Persisted record {record.record_id} ({record.status.value})")

    def delete(
        self,
        record_id: str,
        owner_id: str,
        file_store: Optional[FileStore] = None,
    ) -> VerificationRecord:
        """
        Delete an owned record and its uploaded file.

        Raises:
            CredentialNotFoundError: If no such record exists for this owner.
        """
        with self._lock:
            records = self._load()
            target = next(
                (r for r in records if r.record_id == record_id and r.owner_id == owner_id),
                None,
            )
            if target is None:
                raise CredentialNotFoundError(
                    f"Credential {record_id} not found or not owned by {owner_id}"
                )
            self._write([r for r in records if r.record_id != record_id])

        if file_store is not None:
            file_store.delete(target.file_ref)
        logger.info(f"Deleted record {record_id} for owner {owner_id}")
        return target
