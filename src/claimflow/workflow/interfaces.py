"""Collaborator interfaces for claim verification workflows.

Workflows only ever talk to these protocols. Concrete implementations
live in ``claimflow.adapters``; tests supply their own fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from .models import (
    AnalysisResult,
    ClaimRecord,
    NoteRecord,
    PublishReceipt,
    RewardRecord,
    RewardSummary,
    StakeCommitment,
    StakeReceipt,
    WorkflowProgress,
)

ProgressCallback = Callable[[WorkflowProgress], None]


@runtime_checkable
class AnalysisProvider(Protocol):
    """Produces a verdict for a claim."""

    async def analyze(self, claim_text: str, context: dict[str, Any] | None = None) -> AnalysisResult: ...

    async def health_check(self) -> bool: ...


@runtime_checkable
class LedgerPublisher(Protocol):
    """Publishes immutable knowledge assets."""

    async def publish(self, asset: dict[str, Any], visibility: str) -> PublishReceipt: ...

    async def get(self, asset_id: str) -> dict[str, Any] | None: ...

    async def health_check(self) -> bool: ...


@runtime_checkable
class StakeLedger(Protocol):
    """Commits stakes and computes rewards once consensus is known."""

    async def stake(self, note_id: str, amount: float, position: str, reasoning: str) -> StakeReceipt: ...

    async def calculate_rewards(self, note_id: str, final_verdict: str) -> RewardSummary: ...

    async def health_check(self) -> bool: ...


@runtime_checkable
class PersistenceStore(Protocol):
    """Durable storage for claims, notes, stakes and rewards."""

    async def insert_claim(self, claim: ClaimRecord) -> ClaimRecord: ...

    async def get_claim(self, claim_id: str) -> ClaimRecord | None: ...

    async def update_claim(self, claim_id: str, /, **fields: Any) -> ClaimRecord: ...

    async def insert_note(self, note: NoteRecord) -> NoteRecord: ...

    async def get_note(self, note_id: str) -> NoteRecord | None: ...

    async def update_note(self, note_id: str, /, **fields: Any) -> NoteRecord: ...

    async def insert_stake(self, stake: StakeCommitment) -> StakeCommitment: ...

    async def list_stakes(self, note_id: str) -> list[StakeCommitment]: ...

    async def insert_reward(self, reward: RewardRecord) -> RewardRecord: ...

    async def list_rewards(self, note_id: str | None = None) -> list[RewardRecord]: ...

    async def health_check(self) -> bool: ...
