"""
Judgment Schemas
=================

Outputs of the two corroboration stages:

1. MatchJudgment         — does the document text support the claim?
2. CorroborationJudgment — does the learner's verification URL support it?

Both are immutable once produced. A missing CorroborationJudgment on a
record means "no URL was checked", which is distinct from an
INDETERMINATE outcome.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MatchJudgment(BaseModel):
    """Verdict of the content match analyzer."""
    model_config = ConfigDict(frozen=True)

    matched: bool = Field(description="True only if all claimed fields were confirmed")
    reason: str = Field(description="One-sentence justification")


class CorroborationOutcome(str, Enum):
    """
    Three-way outcome of the URL check.

    - CORROBORATED:  Page is reachable and names the credential.
    - INDETERMINATE: Page is reachable but specifics could not be confirmed.
    - CONTRADICTED:  Page is unreachable, errored, or returned non-2xx.
    """
    CORROBORATED = "corroborated"
    INDETERMINATE = "indeterminate"
    CONTRADICTED = "contradicted"


class CorroborationJudgment(BaseModel):
    """Verdict of the external corroboration checker."""
    model_config = ConfigDict(frozen=True)

    outcome: CorroborationOutcome
    note: str = Field(description="Human-readable explanation")
