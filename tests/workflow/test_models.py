"""Tests for claimflow.workflow models and enums."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from claimflow.core.exceptions import ValidationException
from claimflow.workflow.enums import ClaimStatus, StakePosition, Verdict, WorkflowStep
from claimflow.workflow.models import (
    AgentIdentity,
    AnalysisResult,
    ClaimRecord,
    HealthReport,
    NoteRecord,
    RewardRecord,
    StakeCommitment,
    WorkflowResult,
)

# ============================================================================
# Enums
# ============================================================================


class TestStakePosition:
    @pytest.mark.parametrize(
        "verdict, expected",
        [
            (Verdict.TRUE, StakePosition.SUPPORT),
            (Verdict.MISLEADING, StakePosition.SUPPORT),
            (Verdict.UNCERTAIN, StakePosition.SUPPORT),
            (Verdict.FALSE, StakePosition.OPPOSE),
            ("false", StakePosition.OPPOSE),
        ],
    )
    def test_for_verdict(self, verdict, expected):
        """Only an explicit false verdict opposes."""
        assert StakePosition.for_verdict(verdict) is expected

    def test_as_verdict(self):
        assert StakePosition.SUPPORT.as_verdict() == "true"
        assert StakePosition.OPPOSE.as_verdict() == "false"


class TestWorkflowStep:
    def test_numbers_follow_execution_order(self):
        assert [s.number for s in WorkflowStep] == [1, 2, 3, 4, 5]
        assert WorkflowStep.LEDGER_PUBLISHING.value == "ledger-publishing"


# ============================================================================
# Models
# ============================================================================


class TestAgentIdentity:
    def test_defaults(self):
        agent = AgentIdentity(agent_id="a1", display_name="A", wallet_address="0x0")

        assert agent.trust_score == 0.5
        assert "staking" in agent.capabilities

    def test_requires_id(self):
        with pytest.raises(ValidationException):
            AgentIdentity(agent_id="", display_name="A", wallet_address="0x0")

    def test_trust_score_range(self):
        with pytest.raises(ValidationException):
            AgentIdentity(agent_id="a1", display_name="A", wallet_address="0x0", trust_score=1.5)


class TestAnalysisResult:
    def test_coerces_verdict_and_sources(self):
        result = AnalysisResult(verdict=" Misleading ", confidence=0.85, summary="s", sources=["a", "b"])

        assert result.verdict is Verdict.MISLEADING
        assert result.sources == ("a", "b")

    def test_unknown_verdict(self):
        with pytest.raises(ValidationException, match="Unknown verdict"):
            AnalysisResult(verdict="probably", confidence=0.5, summary="s")

    @pytest.mark.parametrize("confidence", [-0.1, 1.01])
    def test_confidence_range(self, confidence):
        with pytest.raises(ValidationException):
            AnalysisResult(verdict="true", confidence=confidence, summary="s")

    def test_is_immutable(self):
        result = AnalysisResult(verdict="true", confidence=0.9, summary="s")

        with pytest.raises(AttributeError):
            result.confidence = 0.1  # type: ignore[misc]

    def test_from_dict(self):
        result = AnalysisResult.from_dict(
            {"verdict": "false", "confidence": "0.7", "summary": "no", "sources": ["x"]}
        )

        assert result == AnalysisResult(verdict=Verdict.FALSE, confidence=0.7, summary="no", sources=("x",))


class TestClaimRecord:
    def test_from_analysis(self):
        analysis = AnalysisResult(verdict="true", confidence=0.9, summary="ok")

        claim = ClaimRecord.from_analysis("claim", "agent", analysis)

        assert claim.status is ClaimStatus.PUBLISHED
        assert claim.verdict is Verdict.TRUE
        assert claim.analysis["summary"] == "ok"
        assert claim.claim_id

    def test_from_row_with_json_text(self):
        now = datetime.now(UTC)
        claim = ClaimRecord.from_row(
            {
                "id": "c1",
                "claim_text": "t",
                "status": "verified",
                "agent_id": "a",
                "verdict": "misleading",
                "confidence": 0.4,
                "analysis": json.dumps({"summary": "s"}),
                "analyzed_at": now.isoformat(),
                "created_at": now,
                "updated_at": now,
            }
        )

        assert claim.claim_id == "c1"
        assert claim.status is ClaimStatus.VERIFIED
        assert claim.analysis == {"summary": "s"}
        assert claim.analyzed_at == now


class TestStakeCommitment:
    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationException):
            StakeCommitment(note_id="n", staker_id="a", amount=0, position="support")

    def test_coerces_position(self):
        stake = StakeCommitment(note_id="n", staker_id="a", amount=1.0, position="oppose")

        assert stake.position is StakePosition.OPPOSE
        assert stake.to_dict()["position"] == "oppose"


class TestRowRoundTrips:
    def test_note_from_row(self):
        note = NoteRecord.from_row(
            {"id": "n1", "claim_id": "c1", "summary": "s", "confidence": 0.5, "verdict": "true", "sources": ["x"]}
        )

        assert note.note_id == "n1"
        assert note.sources == ["x"]
        assert note.ledger_asset_id is None

    def test_reward_from_row(self):
        reward = RewardRecord.from_row(
            {
                "id": "r1",
                "agent_id": "a",
                "note_id": "n1",
                "amount": "2.5",
                "accuracy_score": 1,
                "claimed_verdict": "true",
                "final_verdict": "true",
            }
        )

        assert reward.amount == 2.5
        assert reward.reason == ""


class TestHealthReport:
    def test_overall_and_unhealthy(self):
        report = HealthReport(analysis_provider=True, ledger_publisher=False, stake_ledger=True, database=False)

        assert report.overall is False
        assert report.unhealthy() == ["ledger_publisher", "database"]
        assert report.to_dict()["overall"] is False

    def test_all_healthy(self):
        assert HealthReport(True, True, True, True).overall is True


class TestWorkflowResult:
    def test_to_dict_omits_empty_sections(self):
        data = WorkflowResult(success=True, claim_id="c1").to_dict()

        assert data["claim_id"] == "c1"
        assert data["errors"] == []
        assert "progress" not in data
        assert "rewards" not in data
