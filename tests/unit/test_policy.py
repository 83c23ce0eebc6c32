"""
Status Policy Tests
====================

Tests for the deterministic status state machine. This is the component
that decides what an employer sees, so the precedence rules are tested
in isolation from all I/O.

Coverage:
    - Precedence: unreadable > content match > URL corroboration
    - A negative content match is never VERIFIED
    - Corroboration only demotes, never promotes
    - Decision notes carry the trace of every step
"""

from __future__ import annotations

import itertools

import pytest

from credverify.render.policy import NOTE_UNREADABLE, StatusPolicy, decide_status
from credverify.schemas.judgment import (
    CorroborationJudgment,
    CorroborationOutcome,
    MatchJudgment,
)
from credverify.schemas.record import VerificationStatus

MATCH = MatchJudgment(matched=True, reason="All fields confirmed.")
NO_MATCH = MatchJudgment(matched=False, reason="issuer missing")


def _corroboration(outcome: CorroborationOutcome) -> CorroborationJudgment:
    return CorroborationJudgment(outcome=outcome, note=f"page was {outcome.value}")


ALL_CORROBORATIONS = [None] + [_corroboration(o) for o in CorroborationOutcome]


@pytest.fixture
def policy():
    return StatusPolicy(min_text_length=50)


class TestPrecedence:

    def test_short_text_rejected(self):
        decision = decide_status(10, MATCH, None)
        assert decision.status == VerificationStatus.REJECTED
        assert decision.note == NOTE_UNREADABLE

    def test_boundary_length_is_readable(self):
        decision = decide_status(50, MATCH, None)
        assert decision.status == VerificationStatus.VERIFIED

    def test_just_below_boundary_rejected(self):
        decision = decide_status(49, MATCH, None)
        assert decision.status == VerificationStatus.REJECTED

    def test_no_match_pending(self):
        decision = decide_status(200, NO_MATCH, None)
        assert decision.status == VerificationStatus.PENDING
        assert "issuer missing" in decision.note
        assert "Requires manual review" in decision.note

    def test_missing_match_pending(self):
        decision = decide_status(200, None, None)
        assert decision.status == VerificationStatus.PENDING

    def test_match_without_url_verified(self):
        decision = decide_status(200, MATCH, None)
        assert decision.status == VerificationStatus.VERIFIED
        assert "content match confirmed" in decision.note
        assert "URL check" not in decision.note

    def test_corroborated_stays_verified(self):
        decision = decide_status(200, MATCH, _corroboration(CorroborationOutcome.CORROBORATED))
        assert decision.status == VerificationStatus.VERIFIED
        assert "URL check: page was corroborated" in decision.note

    def test_indeterminate_leaves_status(self):
        decision = decide_status(200, MATCH, _corroboration(CorroborationOutcome.INDETERMINATE))
        assert decision.status == VerificationStatus.VERIFIED
        assert "page was indeterminate" in decision.note

    def test_contradicted_demotes(self):
        decision = decide_status(200, MATCH, _corroboration(CorroborationOutcome.CONTRADICTED))
        assert decision.status == VerificationStatus.PENDING
        assert "demoted" in decision.note


class TestInvariants:

    @pytest.mark.parametrize("length", [0, 1, 25, 49])
    @pytest.mark.parametrize("match", [MATCH, NO_MATCH, None])
    @pytest.mark.parametrize("corroboration", ALL_CORROBORATIONS)
    def test_short_text_always_rejected(self, length, match, corroboration):
        assert decide_status(length, match, corroboration).status == VerificationStatus.REJECTED

    @pytest.mark.parametrize("length", [0, 49, 50, 500])
    @pytest.mark.parametrize("corroboration", ALL_CORROBORATIONS)
    def test_non_match_never_verified(self, length, corroboration):
        assert decide_status(length, NO_MATCH, corroboration).status != VerificationStatus.VERIFIED

    def test_corroboration_never_promotes(self):
        """Adding any corroboration result never improves on the no-URL status."""
        rank = {
            VerificationStatus.REJECTED: 0,
            VerificationStatus.PENDING: 1,
            VerificationStatus.VERIFIED: 2,
        }
        for length, match in itertools.product([10, 200], [MATCH, NO_MATCH, None]):
            baseline = decide_status(length, match, None).status
            for corroboration in ALL_CORROBORATIONS[1:]:
                status = decide_status(length, match, corroboration).status
                assert rank[status] <= rank[baseline]

    def test_deterministic(self):
        c = _corroboration(CorroborationOutcome.CONTRADICTED)
        assert decide_status(200, MATCH, c) == decide_status(200, MATCH, c)


class TestStatusPolicy:

    def test_should_corroborate_only_when_matched_and_readable(self, policy):
        assert policy.should_corroborate(200, MATCH)
        assert not policy.should_corroborate(200, NO_MATCH)
        assert not policy.should_corroborate(10, MATCH)

    def test_custom_threshold(self):
        policy = StatusPolicy(min_text_length=10)
        assert policy.decide(20, MATCH).status == VerificationStatus.VERIFIED

    def test_from_config(self, config):
        assert StatusPolicy.from_config(config).min_text_length == config.extraction.min_text_length
