"""
Verification Record Builder
============================

Assembles the sealed VerificationRecord from the outputs of every stage.

The record's verification_note is the human-readable trace of all stage
decisions: the status policy's note, followed by the skill, fingerprint
and anchoring outcomes, so soft failures are always visible to a
reviewer without exposing raw exceptions.

Usage:
    builder = RecordBuilder(config)
    record = builder.build(request, text, decision, match, corroboration,
                           profile, fingerprint, receipt)
    builder.export_json(record, "output/record.json")
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from credverify.config import CredVerifyConfig
from credverify.schemas.judgment import CorroborationJudgment, MatchJudgment
from credverify.schemas.record import (
    AnchorReceipt,
    AnchorState,
    SkillProfile,
    StatusDecision,
    VerificationRecord,
)
from credverify.schemas.upload import UploadRequest
from credverify.utils import generate_record_id

logger = logging.getLogger("credverify.render.record")


def describe_enrichment(
    profile: SkillProfile,
    fingerprint: Optional[str],
    receipt: AnchorReceipt,
) -> str:
    """Note fragment for the stages that never affect status."""
    skills = ", ".join(profile.skills) if profile.skills else "none detected"
    parts = [f"Skills: {skills} (level {profile.level})"]

    if fingerprint:
        parts.append(f"Fingerprint: {fingerprint[:16]}…")
    else:
        parts.append("Fingerprint: unavailable (file could not be hashed)")

    if receipt.state == AnchorState.ANCHORED:
        parts.append(f"Anchor: {receipt.tx_ref}")
    elif receipt.state == AnchorState.FAILED:
        parts.append(f"Anchor: failed ({receipt.reason})")
    else:
        parts.append(f"Anchor: not attempted ({receipt.reason})")

    return " | ".join(parts)


class RecordBuilder:
    """
    Builds sealed VerificationRecords from pipeline outputs.

    Args:
        config: CredVerify configuration (stamped via its hash).
    """

    def __init__(self, config: CredVerifyConfig):
        self.config = config

    def build(
        self,
        request: UploadRequest,
        extracted_text: str,
        decision: StatusDecision,
        match: MatchJudgment,
        corroboration: Optional[CorroborationJudgment],
        profile: SkillProfile,
        fingerprint: Optional[str],
        receipt: AnchorReceipt,
        timings: Optional[dict[str, float]] = None,
        record_id: Optional[str] = None,
    ) -> VerificationRecord:
        """
        Assemble and seal the record.

        Returns:
            Sealed VerificationRecord with integrity hash.
        """
        note = f"{decision.note} | {describe_enrichment(profile, fingerprint, receipt)}"

        record = VerificationRecord(
            record_id=record_id or generate_record_id(),
            owner_id=request.owner_id,
            filename=request.filename,
            file_ref=request.file_ref,
            certificate_name=request.certificate_name,
            issuer=request.issuer,
            certificate_number=request.certificate_number,
            certificate_url=request.certificate_url,
            status=decision.status,
            extracted_text=extracted_text,
            match_judgment=match,
            corroboration_judgment=corroboration,
            skill_profile=profile,
            fingerprint=fingerprint,
            anchor_receipt=receipt,
            verification_note=note,
            config_hash=self.config.config_hash(),
            stage_timings_ms=dict(timings or {}),
        ).seal()

        logger.info(
            f"Record built: {record.record_id} status={record.status.value} "
            f"level={profile.level} anchor={receipt.state.value}"
        )
        return record

    def export_json(self, record: VerificationRecord, path: str | Path) -> Path:
        """Export a record as a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(record.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
        logger.info(f"Record exported to {path}")
        return path

    @staticmethod
    def check_integrity(data: dict[str, Any]) -> dict[str, Any]:
        """
        Validate a serialized record and check its integrity hash.

        Returns:
            Dict with 'valid' (bool), 'record' (VerificationRecord) and
            'errors' (list of issues found).
        """
        record = VerificationRecord.model_validate(data)
        errors = []
        if not record.verify_integrity():
            errors.append("Integrity hash mismatch — record may have been tampered with")
        if not record.config_hash:
            errors.append("Missing config hash — provenance unknown")
        return {"valid": not errors, "record": record, "errors": errors}
