"""
OpenAI LLM Judge
=================

Semantic judge backed by OpenAI chat completions in JSON mode. Same
prompt and response contract as the Gemini judge.
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

logger = logging.getLogger("credverify.verify.llm_judge")


class LLMJudge(BaseJudge):
    """
    LLM-as-judge using GPT-4o-mini or similar.

    Usage:
        judge = LLMJudge(api_key="sk-...", model="gpt-4o-mini")
        verdict = await judge.judge(text, claim)

    Args:
        api_key: OpenAI API key.
        model: OpenAI model name.
    """

    name = "openai"

    def __init__(self, api_key: str = "", model: str = "gpt-4o-mini"):
        self.api_key = api_key
        self.model = model
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def judge(self, text: str, claim: ClaimedCertificate) -> MatchJudgment:
        client = self._get_client()
        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": JUDGE_SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(text, claim)},
            ],
            temperature=0.0,
            response_format={"type": "json_object"},
            max_tokens=200,
        )
        verdict = parse_judge_response(response.choices[0].message.content)
        logger.debug(f"OpenAI verdict: matched={verdict.matched} — {verdict.reason[:80]}")
        return verdict
