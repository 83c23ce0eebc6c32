"""
Verification Record Schema
===========================

Defines the output of the pipeline: the status decision, the skill
profile, the anchoring receipt, and the VerificationRecord that ties
every stage result together.

The VerificationRecord is the complete audit trail for a single upload.
It carries an integrity hash computed over its content (excluding the
hash field itself), enabling tamper detection after persistence.

Data Flow:
    stage outputs + StatusDecision → RecordBuilder → VerificationRecord
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from credverify.schemas.judgment import CorroborationJudgment, MatchJudgment
from credverify.utils import compute_content_hash, utc_timestamp


class VerificationStatus(str, Enum):
    """
    Terminal status of a credential.

    - VERIFIED: Document text corroborates the claim (and the URL, if
                given, did not contradict it).
    - PENDING:  Needs human review.
    - REJECTED: Document is unreadable or illegible.
    """
    VERIFIED = "verified"
    PENDING = "pending"
    REJECTED = "rejected"


class StatusDecision(BaseModel):
    """
    Output of the status policy.

    Deterministic: the same extraction length, match judgment and
    corroboration judgment always produce the same decision.
    """
    model_config = ConfigDict(frozen=True)

    status: VerificationStatus
    note: str = Field(description="Trace of every decision that led to the status")


class SkillProfile(BaseModel):
    """Canonical skill set and the inferred NSQF-style level."""
    model_config = ConfigDict(frozen=True)

    skills: list[str] = Field(default_factory=list)
    level: int = Field(default=1, ge=1)


class AnchorState(str, Enum):
    """
    Three-way anchoring state.

    - NOT_ATTEMPTED: Anchoring was skipped (disabled, or nothing to anchor).
    - FAILED:        A submission was attempted and did not succeed.
    - ANCHORED:      The fingerprint is on the ledger; tx_ref is set.
    """
    NOT_ATTEMPTED = "not_attempted"
    FAILED = "failed"
    ANCHORED = "anchored"


class AnchorReceipt(BaseModel):
    """Result of the ledger anchor. Never a raised failure."""
    model_config = ConfigDict(frozen=True)

    state: AnchorState
    tx_ref: Optional[str] = Field(default=None, description="Ledger transaction reference")
    reason: str = Field(default="", description="Why anchoring was skipped or failed")

    @model_validator(mode="after")
    def tx_ref_iff_anchored(self) -> "AnchorReceipt":
        if self.state == AnchorState.ANCHORED and not self.tx_ref:
            raise ValueError("anchored receipt requires tx_ref")
        if self.state != AnchorState.ANCHORED and self.tx_ref:
            raise ValueError(f"{self.state.value} receipt cannot carry tx_ref")
        return self

    @classmethod
    def anchored(cls, tx_ref: str) -> "AnchorReceipt":
        return cls(state=AnchorState.ANCHORED, tx_ref=tx_ref)

    @classmethod
    def failed(cls, reason: str) -> "AnchorReceipt":
        return cls(state=AnchorState.FAILED, reason=reason)

    @classmethod
    def not_attempted(cls, reason: str) -> "AnchorReceipt":
        return cls(state=AnchorState.NOT_ATTEMPTED, reason=reason)

    @property
    def is_anchored(self) -> bool:
        return self.state == AnchorState.ANCHORED


class VerificationRecord(BaseModel):
    """
    Complete, immutable result of one pipeline run.

    Created once per upload. A new upload produces a new record; there
    is no in-place re-verification.
    """
    model_config = ConfigDict(frozen=True)

    # ── Identity ───────────────────────────────────────────────────
    record_id: str = Field(description="Unique record identifier")
    owner_id: Optional[str] = Field(default=None, description="Owning learner")
    created_at: str = Field(default_factory=utc_timestamp, description="ISO 8601 timestamp")

    # ── Upload ─────────────────────────────────────────────────────
    filename: str
    file_ref: str
    certificate_name: str
    issuer: str
    certificate_number: str
    certificate_url: Optional[str] = None

    # ── Stage results ──────────────────────────────────────────────
    status: VerificationStatus
    extracted_text: str = ""
    match_judgment: MatchJudgment
    corroboration_judgment: Optional[CorroborationJudgment] = None
    skill_profile: SkillProfile
    fingerprint: Optional[str] = Field(default=None, description="SHA-256 of the file bytes")
    anchor_receipt: AnchorReceipt
    verification_note: str = ""

    # ── Provenance ─────────────────────────────────────────────────
    config_hash: str = Field(default="", description="Hash of the configuration used")
    stage_timings_ms: dict[str, float] = Field(default_factory=dict)

    # ── Integrity ──────────────────────────────────────────────────
    integrity_hash: str = Field(default="", description="SHA-256 of record content")

    def compute_integrity_hash(self) -> str:
        """SHA-256 over all record content except integrity_hash itself."""
        content = self.model_dump(mode="json", exclude={"integrity_hash"})
        return compute_content_hash(content)

    def seal(self) -> "VerificationRecord":
        """
        Return a copy with the integrity hash populated.

        Call this once all fields are assembled. The sealed record can be
        verified later by recomputing the hash and comparing.
        """
        return self.model_copy(update={"integrity_hash": self.compute_integrity_hash()})

    def verify_integrity(self) -> bool:
        """True if the integrity hash matches the content."""
        if not self.integrity_hash:
            return False
        return self.integrity_hash == self.compute_integrity_hash()

    @property
    def skills(self) -> list[str]:
        return self.skill_profile.skills

    @property
    def nsqf_level(self) -> int:
        return self.skill_profile.level
