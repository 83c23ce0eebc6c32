"""
CredVerify Data Schemas
========================

Pydantic v2 models implementing the data contracts of the pipeline:

1. UploadRequest          — Input contract (file reference + claim)
2. MatchJudgment          — Content match verdict
3. CorroborationJudgment  — URL corroboration verdict
4. VerificationRecord     — Output contract (the persisted audit trail)

All schemas support:
- Runtime validation with Pydantic
- JSON Schema export for interoperability
- Serialization/deserialization for audit trails
"""

from credverify.schemas.upload import ClaimedCertificate, UploadRequest
from credverify.schemas.judgment import (
    CorroborationJudgment,
    CorroborationOutcome,
    MatchJudgment,
)
from credverify.schemas.record import (
    AnchorReceipt,
    AnchorState,
    SkillProfile,
    StatusDecision,
    VerificationRecord,
    VerificationStatus,
)

__all__ = [
    # Upload
    "ClaimedCertificate",
    "UploadRequest",
    # Judgments
    "CorroborationJudgment",
    "CorroborationOutcome",
    "MatchJudgment",
    # Record
    "AnchorReceipt",
    "AnchorState",
    "SkillProfile",
    "StatusDecision",
    "VerificationRecord",
    "VerificationStatus",
]
