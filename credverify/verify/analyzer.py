"""
Content Match Analyzer
=======================

Decides whether the extracted document text corroborates the learner's
claimed certificate identity.

Policy (in precedence order):
    1. Text shorter than min_text_length → non-match, "too short"
    2. No judge configured               → non-match, "unavailable"
    3. Judge raises or times out         → non-match, "unavailable"
    4. Otherwise                         → the judge's verdict

Analyzer unavailability never passes a credential. The judgment is
produced once per run and is not retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from credverify.schemas.judgment import MatchJudgment
from credverify.schemas.upload import ClaimedCertificate
from credverify.utils import truncate_chars
from credverify.verify.judge import BaseJudge

logger = logging.getLogger("credverify.verify.analyzer")

REASON_TOO_SHORT = "document unreadable or too short"
REASON_UNAVAILABLE = "verification unavailable"


class ContentMatchAnalyzer:
    """
    Gatekeeper around a pluggable semantic judge.

    Usage:
        analyzer = ContentMatchAnalyzer(judge=RuleBasedJudge())
        verdict = await analyzer.analyze(text, claim)

    Args:
        judge: Judge backend, or None when none is configured.
        min_text_length: Shorter texts are rejected without consulting the judge.
        timeout_s: Upper bound on a single judge call.
        max_text_chars: Text is truncated to this length before judging.
    """

    def __init__(
        self,
        judge: Optional[BaseJudge],
        min_text_length: int = 50,
        timeout_s: float = 30.0,
        max_text_chars: int = 12000,
    ):
        self.judge = judge
        self.min_text_length = min_text_length
        self.timeout_s = timeout_s
        self.max_text_chars = max_text_chars

    async def analyze(self, text: str, claim: ClaimedCertificate) -> MatchJudgment:
        """
        Judge text against the claim. Never raises.

        Args:
            text: Extracted document text (possibly empty).
            claim: Claimed certificate identity.

        Returns:
            MatchJudgment.
        """
        if len(text or "") < self.min_text_length:
            return MatchJudgment(matched=False, reason=REASON_TOO_SHORT)

        if self.judge is None:
            logger.warning("No semantic judge configured; defaulting to non-match")
            return MatchJudgment(matched=False, reason=REASON_UNAVAILABLE)

        try:
            verdict = await asyncio.wait_for(
                self.judge.judge(truncate_chars(text, self.max_text_chars), claim),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            logger.error(f"Judge '{self.judge.name}' timed out after {self.timeout_s}s")
            return MatchJudgment(matched=False, reason=REASON_UNAVAILABLE)
        except Exception as e:
            logger.error(f"Judge '{self.judge.name}' failed: {type(e).__name__}: {e}")
            return MatchJudgment(matched=False, reason=REASON_UNAVAILABLE)

        logger.info(f"Content match ({self.judge.name}): matched={verdict.matched}")
        return verdict
