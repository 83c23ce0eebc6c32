"""
Status Policy Engine
=====================

DETERMINISTIC mapping from stage results to a VerificationStatus.

Transitions, in precedence order:
    1. Extracted text shorter than min_text_length → REJECTED
    2. Content match negative                      → PENDING (manual review)
    3. Content match positive                      → VERIFIED (tentative)
    4. URL corroboration, only when step 3 applied:
         CORROBORATED  → VERIFIED
         CONTRADICTED  → PENDING (demoted)
         INDETERMINATE → unchanged
    5. No URL checked → the step 2/3 result is final

INVARIANTS:
    - A negative content match is never VERIFIED.
    - Corroboration only ever demotes; it never promotes PENDING or
      REJECTED to VERIFIED.
    - Skills, fingerprint and anchoring have no say in the status.

This module contains NO I/O, NO LLM calls, NO randomness.
"""

from __future__ import annotations

import logging
from typing import Optional

from credverify.config import CredVerifyConfig
from credverify.schemas.judgment import (
    CorroborationJudgment,
    CorroborationOutcome,
    MatchJudgment,
)
from credverify.schemas.record import StatusDecision, VerificationStatus

logger = logging.getLogger("credverify.render.policy")

NOTE_UNREADABLE = "Parsing failed or document unreadable."


def decide_status(
    text_length: int,
    match: Optional[MatchJudgment],
    corroboration: Optional[CorroborationJudgment],
    min_text_length: int = 50,
) -> StatusDecision:
    """
    Pure status transition function.

    Args:
        text_length: Length of the extracted text.
        match: Content match verdict (ignored when the text is too short).
        corroboration: URL verdict, or None if no URL was checked.
        min_text_length: Rejection threshold.

    Returns:
        StatusDecision with the terminal status and a decision trace.
    """
    # Priority 1: unreadable document
    if text_length < min_text_length:
        return StatusDecision(status=VerificationStatus.REJECTED, note=NOTE_UNREADABLE)

    # Priority 2: content match
    if match is None or not match.matched:
        reason = match.reason if match is not None else "no content analysis"
        return StatusDecision(
            status=VerificationStatus.PENDING,
            note=f"Content analysis inconclusive: {reason}. Requires manual review.",
        )

    status = VerificationStatus.VERIFIED
    note = f"Content analysis: {match.reason} (content match confirmed)"

    # Priority 3: URL corroboration can only demote
    if corroboration is not None:
        note += f" | URL check: {corroboration.note}"
        if corroboration.outcome == CorroborationOutcome.CONTRADICTED:
            status = VerificationStatus.PENDING
            note += " (demoted due to failed URL validation)"

    return StatusDecision(status=status, note=note)


class StatusPolicy:
    """
    Configured wrapper around `decide_status`.

    Usage:
        policy = StatusPolicy(min_text_length=50)
        decision = policy.decide(len(text), match, corroboration)

    Args:
        min_text_length: Extracted text shorter than this is REJECTED.
    """

    def __init__(self, min_text_length: int = 50):
        assert min_text_length >= 1, "min_text_length must be positive"
        self.min_text_length = min_text_length

    @classmethod
    def from_config(cls, config: CredVerifyConfig) -> "StatusPolicy":
        return cls(min_text_length=config.extraction.min_text_length)

    def should_corroborate(self, text_length: int, match: MatchJudgment) -> bool:
        """URL corroboration runs only for readable, positively matched documents."""
        return text_length >= self.min_text_length and match.matched

    def decide(
        self,
        text_length: int,
        match: Optional[MatchJudgment],
        corroboration: Optional[CorroborationJudgment] = None,
    ) -> StatusDecision:
        decision = decide_status(
            text_length,
            match,
            corroboration,
            min_text_length=self.min_text_length,
        )
        logger.info(f"Status decision: {decision.status.value} ({decision.note})")
        return decision
