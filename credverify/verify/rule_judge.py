"""
Rule-Based Judge
=================

Deterministic, offline judge. A claimed field is confirmed when its
normalized form (lowercase, alphanumerics only) appears in the
normalized document text, or when some window of the text is a close
enough spelling of it.

Used for tests, CI and deployments without an LLM key. It contains NO
network calls and NO randomness.
"""

from __future__ import annotations

import logging
from difflib import SequenceMatcher

from credverify.schemas.judgment import MatchJudgment
from credverify.schemas.upload import ClaimedCertificate
from credverify.utils import normalize_token
from credverify.verify.judge import BaseJudge

logger = logging.getLogger("credverify.verify.rule_judge")


class RuleBasedJudge(BaseJudge):
    """
    Keyword + fuzzy matcher over the three claimed fields.

    Usage:
        judge = RuleBasedJudge(fuzzy_threshold=0.85)
        verdict = await judge.judge(text, claim)

    Args:
        fuzzy_threshold: Minimum SequenceMatcher ratio for a near-miss
            spelling to count as present. 1.0 disables fuzzy matching.
    """

    name = "rule"

    def __init__(self, fuzzy_threshold: float = 0.85):
        self.fuzzy_threshold = fuzzy_threshold

    async def judge(self, text: str, claim: ClaimedCertificate) -> MatchJudgment:
        haystack = normalize_token(text)
        fields = {
            "certificate name": claim.name,
            "issuer": claim.issuer,
            "certificate number": claim.serial,
        }
        missing = [
            label for label, value in fields.items()
            if not self._contains(haystack, normalize_token(value))
        ]

        if missing:
            return MatchJudgment(
                matched=False,
                reason=f"Could not confirm {', '.join(missing)} in the document.",
            )
        return MatchJudgment(
            matched=True,
            reason="All claimed fields were found in the document.",
        )

    def _contains(self, haystack: str, needle: str) -> bool:
        if not needle:
            return False
        if needle in haystack:
            return True
        if self.fuzzy_threshold >= 1.0 or len(haystack) < len(needle):
            return False
        return self._best_window_ratio(haystack, needle) >= self.fuzzy_threshold

    @staticmethod
    def _best_window_ratio(haystack: str, needle: str) -> float:
        """Best similarity of needle against same-length windows of haystack."""
        width = len(needle)
        best = 0.0
        matcher = SequenceMatcher(autojunk=False)
        matcher.set_seq2(needle)
        for start in range(len(haystack) - width + 1):
            matcher.set_seq1(haystack[start:start + width])
            if matcher.real_quick_ratio() <= best or matcher.quick_ratio() <= best:
                continue
            best = max(best, matcher.ratio())
            if best == 1.0:
                break
        return best
