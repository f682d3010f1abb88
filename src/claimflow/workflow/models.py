"""Data models for claim verification workflows.

Contains the dataclasses for agents, analyses, persisted claim/note/stake/
reward records, collaborator receipts and workflow results.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from ..core.exceptions import ValidationException
from .constants import WorkflowConstants
from .enums import ClaimStatus, StakePosition, Verdict


def _new_id() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


def _as_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _as_json(value: Any) -> Any:
    """Rows may carry JSON columns as text (in-memory) or decoded (psycopg2)."""
    if isinstance(value, str):
        return json.loads(value)
    return value


def _check_unit_interval(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValidationException(f"{name} must be between 0.0 and 1.0", name, value)


# ============================================================================
# Agents
# ============================================================================

@dataclass
class AgentIdentity:
    """An autonomous agent able to submit and stake on claims."""
    agent_id: str
    display_name: str
    wallet_address: str
    capabilities: list[str] = field(default_factory=lambda: list(WorkflowConstants.DEFAULT_CAPABILITIES))
    trust_score: float = WorkflowConstants.NEUTRAL_TRUST_SCORE
    registered_at: datetime = field(default_factory=_now)
    last_active: datetime = field(default_factory=_now)

    def __post_init__(self):
        if not self.agent_id:
            raise ValidationException("Agent id is required", "agent_id")
        _check_unit_interval("trust_score", self.trust_score)

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "display_name": self.display_name,
            "wallet_address": self.wallet_address,
            "capabilities": list(self.capabilities),
            "trust_score": self.trust_score,
            "registered_at": self.registered_at.isoformat(),
            "last_active": self.last_active.isoformat(),
        }


@dataclass
class WorkflowRequest:
    """One submission of a claim by an agent. Never persisted."""
    agent: AgentIdentity
    claim_text: str
    context: dict[str, Any] | None = None


# ============================================================================
# Analysis
# ============================================================================

@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of analysing a claim. Immutable once produced."""
    verdict: Verdict
    confidence: float
    summary: str
    sources: tuple[str, ...] = ()

    def __post_init__(self):
        if not isinstance(self.verdict, Verdict):
            try:
                object.__setattr__(self, "verdict", Verdict(str(self.verdict).strip().lower()))
            except ValueError:
                raise ValidationException(
                    f"Unknown verdict: {self.verdict}", "verdict", self.verdict
                ) from None
        _check_unit_interval("confidence", self.confidence)
        if not isinstance(self.sources, tuple):
            object.__setattr__(self, "sources", tuple(self.sources))

    def to_dict(self) -> dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "confidence": self.confidence,
            "summary": self.summary,
            "sources": list(self.sources),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisResult:
        return cls(
            verdict=data["verdict"],
            confidence=float(data["confidence"]),
            summary=data.get("summary", ""),
            sources=tuple(data.get("sources") or ()),
        )


# ============================================================================
# Persisted records
# ============================================================================

@dataclass
class ClaimRecord:
    """A submitted claim and the analysis it received."""
    claim_text: str
    agent_id: str
    verdict: Verdict
    confidence: float
    analysis: dict[str, Any]
    status: ClaimStatus = ClaimStatus.PUBLISHED
    claim_id: str = field(default_factory=_new_id)
    analyzed_at: datetime = field(default_factory=_now)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def __post_init__(self):
        _check_unit_interval("confidence", self.confidence)

    @classmethod
    def from_analysis(cls, claim_text: str, agent_id: str, analysis: AnalysisResult) -> ClaimRecord:
        return cls(
            claim_text=claim_text,
            agent_id=agent_id,
            verdict=analysis.verdict,
            confidence=analysis.confidence,
            analysis=analysis.to_dict(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "claim_id": self.claim_id,
            "claim_text": self.claim_text,
            "status": self.status.value,
            "agent_id": self.agent_id,
            "verdict": self.verdict.value,
            "confidence": self.confidence,
            "analysis": self.analysis,
            "analyzed_at": self.analyzed_at.isoformat(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ClaimRecord:
        return cls(
            claim_id=str(row["id"]),
            claim_text=row["claim_text"],
            status=ClaimStatus(row["status"]),
            agent_id=row["agent_id"],
            verdict=Verdict(row["verdict"]),
            confidence=float(row["confidence"]),
            analysis=_as_json(row.get("analysis")) or {},
            analyzed_at=_as_datetime(row.get("analyzed_at")) or _now(),
            created_at=_as_datetime(row.get("created_at")) or _now(),
            updated_at=_as_datetime(row.get("updated_at")) or _now(),
        )


@dataclass
class NoteRecord:
    """Public annotation of a claim, pointing at its ledger asset."""
    claim_id: str
    summary: str
    confidence: float
    verdict: Verdict
    sources: list[str] = field(default_factory=list)
    ledger_asset_id: str | None = None
    note_id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "note_id": self.note_id,
            "claim_id": self.claim_id,
            "ledger_asset_id": self.ledger_asset_id,
            "summary": self.summary,
            "confidence": self.confidence,
            "verdict": self.verdict.value,
            "sources": list(self.sources),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> NoteRecord:
        return cls(
            note_id=str(row["id"]),
            claim_id=str(row["claim_id"]),
            ledger_asset_id=row.get("ledger_asset_id"),
            summary=row.get("summary", ""),
            confidence=float(row["confidence"]),
            verdict=Verdict(row["verdict"]),
            sources=list(_as_json(row.get("sources")) or []),
            created_at=_as_datetime(row.get("created_at")) or _now(),
            updated_at=_as_datetime(row.get("updated_at")) or _now(),
        )


@dataclass
class StakeCommitment:
    """Tokens committed for or against a note. Append-only."""
    note_id: str
    staker_id: str
    amount: float
    position: StakePosition
    reasoning: str = ""
    stake_id: str = field(default_factory=_new_id)
    tx_hash: str | None = None
    created_at: datetime = field(default_factory=_now)

    def __post_init__(self):
        if self.amount <= 0:
            raise ValidationException("Stake amount must be positive", "amount", self.amount)
        if not isinstance(self.position, StakePosition):
            self.position = StakePosition(self.position)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stake_id": self.stake_id,
            "note_id": self.note_id,
            "staker_id": self.staker_id,
            "amount": self.amount,
            "position": self.position.value,
            "reasoning": self.reasoning,
            "tx_hash": self.tx_hash,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> StakeCommitment:
        return cls(
            stake_id=str(row["id"]),
            note_id=str(row["note_id"]),
            staker_id=row["staker_id"],
            amount=float(row["amount"]),
            position=StakePosition(row["position"]),
            reasoning=row.get("reasoning") or "",
            tx_hash=row.get("tx_hash"),
            created_at=_as_datetime(row.get("created_at")) or _now(),
        )


@dataclass
class RewardRecord:
    """Reward paid to an agent whose verdict matched consensus."""
    agent_id: str
    note_id: str
    amount: float
    accuracy_score: float
    claimed_verdict: str
    final_verdict: str
    ledger_tx_id: str | None = None
    reason: str = ""
    reward_id: str = field(default_factory=_new_id)
    distributed_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reward_id": self.reward_id,
            "agent_id": self.agent_id,
            "note_id": self.note_id,
            "amount": self.amount,
            "accuracy_score": self.accuracy_score,
            "claimed_verdict": self.claimed_verdict,
            "final_verdict": self.final_verdict,
            "ledger_tx_id": self.ledger_tx_id,
            "reason": self.reason,
            "distributed_at": self.distributed_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> RewardRecord:
        return cls(
            reward_id=str(row["id"]),
            agent_id=row["agent_id"],
            note_id=str(row["note_id"]),
            amount=float(row["amount"]),
            accuracy_score=float(row["accuracy_score"]),
            claimed_verdict=row["claimed_verdict"],
            final_verdict=row["final_verdict"],
            ledger_tx_id=row.get("ledger_tx_id"),
            reason=row.get("reason") or "",
            distributed_at=_as_datetime(row.get("distributed_at")) or _now(),
        )


# ============================================================================
# Derived values and collaborator receipts
# ============================================================================

@dataclass(frozen=True)
class ConsensusResult:
    """Majority verdict over a note's stakes. Never persisted."""
    has_consensus: bool
    final_verdict: str
    total_stakes: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_consensus": self.has_consensus,
            "final_verdict": self.final_verdict,
            "total_stakes": self.total_stakes,
        }


@dataclass(frozen=True)
class PublishReceipt:
    asset_id: str
    tx_hash: str | None = None
    block_number: int | None = None


@dataclass(frozen=True)
class StakeReceipt:
    stake_id: str
    consensus_snapshot: dict[str, float] = field(default_factory=lambda: {"support": 0.0, "oppose": 0.0})
    tx_hash: str | None = None


@dataclass
class RewardSummary:
    total_rewards: float = 0.0
    individual_rewards: list[RewardRecord] = field(default_factory=list)


@dataclass
class HealthReport:
    """Health of every collaborator a workflow depends on."""
    analysis_provider: bool
    ledger_publisher: bool
    stake_ledger: bool
    database: bool

    @property
    def overall(self) -> bool:
        return self.analysis_provider and self.ledger_publisher and self.stake_ledger and self.database

    def unhealthy(self) -> list[str]:
        """Names of the collaborators that failed their check."""
        return [name for name, ok in self._checks() if not ok]

    def _checks(self) -> list[tuple[str, bool]]:
        return [
            ("analysis_provider", self.analysis_provider),
            ("ledger_publisher", self.ledger_publisher),
            ("stake_ledger", self.stake_ledger),
            ("database", self.database),
        ]

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = dict(self._checks())
        result["overall"] = self.overall
        return result


# ============================================================================
# Workflow progress and results
# ============================================================================

@dataclass(frozen=True)
class WorkflowProgress:
    """Snapshot emitted to a progress callback."""
    step: str
    step_number: int
    total_steps: int
    percentage: int
    message: str
    started_at: datetime
    elapsed_ms: int
    estimated_remaining_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "step_number": self.step_number,
            "total_steps": self.total_steps,
            "percentage": self.percentage,
            "message": self.message,
            "started_at": self.started_at.isoformat(),
            "elapsed_ms": self.elapsed_ms,
            "estimated_remaining_ms": self.estimated_remaining_ms,
        }


@dataclass
class WorkflowResult:
    """Outcome of one workflow run.

    A failed result may still carry identifiers: records written before
    the failure are durable and are reported so callers can find them.
    """
    success: bool
    claim_id: str | None = None
    note_id: str | None = None
    ledger_asset_id: str | None = None
    stake_id: str | None = None
    errors: list[str] = field(default_factory=list)
    execution_time_ms: int = 0
    progress: WorkflowProgress | None = None
    rewards: list[RewardRecord] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "claim_id": self.claim_id,
            "note_id": self.note_id,
            "ledger_asset_id": self.ledger_asset_id,
            "stake_id": self.stake_id,
            "errors": list(self.errors),
            "execution_time_ms": self.execution_time_ms,
        }
        if self.progress:
            result["progress"] = self.progress.to_dict()
        if self.rewards:
            result["rewards"] = [r.to_dict() for r in self.rewards]
        if self.details:
            result["details"] = self.details
        return result
