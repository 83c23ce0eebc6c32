"""
Gemini Judge — LLM-as-Judge Content Matching
==============================================

Uses Google's Gemini API as the semantic judge. The model is asked to
confirm that the certificate name, issuer and number all appear in the
document text and are consistent with its context, ignoring case,
formatting and minor spelling differences.

Integration:
    - Follows the BaseJudge contract (async judge)
    - Requests a JSON response and parses it tolerantly
    - Raises on transport errors; the analyzer maps those to a non-match
"""

from __future__ import annotations

import logging

from credverify.schemas.judgment import MatchJudgment
from credverify.schemas.upload import ClaimedCertificate
from credverify.verify.judge import (
    JUDGE_SYSTEM_PROMPT,
    BaseJudge,
    build_prompt,
    parse_judge_response,
)

logger = logging.getLogger("credverify.verify.gemini_judge")


class GeminiJudge(BaseJudge):
    """
    Content match judgment using Google Gemini.

    Usage:
        judge = GeminiJudge(api_key="AIza...")
        verdict = await judge.judge(text, claim)

    Args:
        api_key: Google AI API key.
        model: Gemini model name (default: gemini-2.0-flash).
    """

    name = "gemini"

    def __init__(self, api_key: str = "", model: str = "gemini-2.0-flash"):
        self.api_key = api_key
        self.model = model
        self._client = None

    def _get_client(self):
        """Lazy-initialize the Gemini client."""
        if self._client is None:
            from google import genai
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def judge(self, text: str, claim: ClaimedCertificate) -> MatchJudgment:
        client = self._get_client()
        response = await client.aio.models.generate_content(
            model=self.model,
            contents=build_prompt(text, claim),
            config={
                "system_instruction": JUDGE_SYSTEM_PROMPT,
                "temperature": 0.0,
                "max_output_tokens": 200,
                "response_mime_type": "application/json",
            },
        )
        verdict = parse_judge_response(response.text)
        logger.debug(f"Gemini verdict: matched={verdict.matched} — {verdict.reason[:80]}")
        return verdict
