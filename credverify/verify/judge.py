"""
Semantic Judge Interface
=========================

Abstract base class for every judge that decides whether document text
corroborates a claimed certificate identity (name, issuer, serial).
Implementations:

    - RuleBasedJudge: deterministic keyword + fuzzy matching (tests, offline)
    - GeminiJudge:    Google Gemini via google-genai
    - LLMJudge:       OpenAI chat completions

The judge backend is chosen once, by configuration, in `build_judge()`.
The analyzer never branches on which backend it holds.

Data Flow:
    (document_text, ClaimedCertificate) → Judge → MatchJudgment
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

from credverify.config import CredVerifyConfig, JudgeBackend
from credverify.schemas.judgment import MatchJudgment
from credverify.schemas.upload import ClaimedCertificate

logger = logging.getLogger("credverify.verify.judge")


JUDGE_SYSTEM_PROMPT = (
    "You are a strict data verification expert. Your task is to analyze the "
    "DOCUMENT_TEXT and determine if you can CONFIRM the presence and accuracy of "
    "all three required USER_INPUTS (Certificate Name, Issuer, Certificate Number) "
    "and that they are consistent with the context of the document. You must ignore "
    "formatting differences, capitalization, and minor spelling errors."
)

JUDGE_USER_PROMPT = """DOCUMENT_TEXT: \"\"\"{text}\"\"\"

USER_INPUTS:
Certificate Name: {name}
Issuer: {issuer}
Certificate Number: {serial}

Analyze the DOCUMENT_TEXT and determine if the data is VERIFIABLE based on the inputs.

Respond with ONLY a JSON object (no markdown, no explanation outside JSON):
{{"matched": <true|false>, "reason": "<one sentence>"}}"""


class BaseJudge(ABC):
    """
    Abstract semantic judge.

    Implementations may raise on transport or parsing failures; the
    ContentMatchAnalyzer converts any failure into a non-match.
    """

    name: str = "base"

    @abstractmethod
    async def judge(self, text: str, claim: ClaimedCertificate) -> MatchJudgment:
        """
        Decide whether text confirms all three claimed fields.

        Args:
            text: Extracted document text.
            claim: The claimed certificate identity.

        Returns:
            MatchJudgment with a boolean verdict and a one-sentence reason.
        """
        ...


def build_prompt(text: str, claim: ClaimedCertificate) -> str:
    """Fill the user prompt for remote judges."""
    return JUDGE_USER_PROMPT.format(
        text=text,
        name=claim.name,
        issuer=claim.issuer,
        serial=claim.serial,
    )


def parse_judge_response(raw: str) -> MatchJudgment:
    """
    Parse a judge's JSON answer, tolerating markdown fences and chatter.

    Only a literal JSON ``true`` counts as a match.

    Raises:
        ValueError: If no JSON object can be recovered.
    """
    text = (raw or "").strip()

    # Strip markdown code blocks
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(
            lines[1:-1] if lines[-1].strip() == "```" else lines[1:]
        )
        text = text.strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Try to find JSON object in the response
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            raise ValueError(f"Judge response is not JSON: {text[:200]!r}")
        data = json.loads(text[start:end])

    if not isinstance(data, dict):
        raise ValueError(f"Judge response is not a JSON object: {text[:200]!r}")

    matched = data.get("matched", data.get("ai_match")) is True
    reason = str(data.get("reason") or data.get("ai_reason") or "Analysis completed.")
    return MatchJudgment(matched=matched, reason=reason)


def build_judge(config: CredVerifyConfig) -> Optional[BaseJudge]:
    """
    Create the judge selected by configuration.

    Selection for ``auto``:
        1. Gemini API key → GeminiJudge
        2. OpenAI API key → LLMJudge
        3. Otherwise      → None (analyzer reports "verification unavailable")

    Returns:
        A judge instance, or None when no backend is available.
    """
    backend = config.match.judge

    if backend == JudgeBackend.AUTO:
        if config.gemini_api_key:
            backend = JudgeBackend.GEMINI
        elif config.openai_api_key:
            backend = JudgeBackend.OPENAI
        else:
            logger.warning("No judge API key configured; content matching is unavailable")
            return None

    if backend == JudgeBackend.NONE:
        return None

    if backend == JudgeBackend.RULE:
        from credverify.verify.rule_judge import RuleBasedJudge
        return RuleBasedJudge(fuzzy_threshold=config.match.fuzzy_threshold)

    if backend == JudgeBackend.GEMINI:
        if not config.gemini_api_key:
            logger.warning("Gemini judge selected but CREDVERIFY_GEMINI_API_KEY is not set")
            return None
        from credverify.verify.gemini_judge import GeminiJudge
        return GeminiJudge(api_key=config.gemini_api_key, model=config.match.gemini_model)

    if backend == JudgeBackend.OPENAI:
        if not config.openai_api_key:
            logger.warning("OpenAI judge selected but CREDVERIFY_OPENAI_API_KEY is not set")
            return None
        from credverify.verify.llm_judge import LLMJudge
        return LLMJudge(api_key=config.openai_api_key, model=config.match.openai_model)

    raise ValueError(f"Unknown judge backend: {backend}")
