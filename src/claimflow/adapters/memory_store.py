"""Dict-backed persistence store for tests, demos and single-process use."""

from __future__ import annotations

import copy
import logging
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from ..core.exceptions import NotFoundError, ValidationException
from ..workflow.models import ClaimRecord, NoteRecord, RewardRecord, StakeCommitment

logger = logging.getLogger(__name__)


class InMemoryStore:
    """``PersistenceStore`` holding every record in process memory.

    Records are copied on the way in and out, so callers cannot mutate
    stored state by accident. Stakes and rewards are append-only.
    """

    def __init__(self) -> None:
        self.claims: dict[str, ClaimRecord] = {}
        self.notes: dict[str, NoteRecord] = {}
        self.stakes: list[StakeCommitment] = []
        self.rewards: list[RewardRecord] = []
        self.healthy = True

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    async def insert_claim(self, claim: ClaimRecord) -> ClaimRecord:
        if claim.claim_id in self.claims:
            raise ValidationException("Duplicate claim id", "claim_id", claim.claim_id)
        self.claims[claim.claim_id] = copy.deepcopy(claim)
        return copy.deepcopy(claim)

    async def get_claim(self, claim_id: str) -> ClaimRecord | None:
        claim = self.claims.get(claim_id)
        return copy.deepcopy(claim) if claim else None

    async def update_claim(self, claim_id: str, /, **fields: Any) -> ClaimRecord:
        claim = self.claims.get(claim_id)
        if claim is None:
            raise NotFoundError("Claim", claim_id)
        if "claim_id" in fields:
            raise ValidationException("Claim id is immutable", "claim_id")
        updated = replace(claim, **{"updated_at": datetime.now(UTC), **fields})
        self.claims[claim_id] = updated
        return copy.deepcopy(updated)

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def insert_note(self, note: NoteRecord) -> NoteRecord:
        if note.claim_id not in self.claims:
            raise NotFoundError("Claim", note.claim_id)
        if note.note_id in self.notes:
            raise ValidationException("Duplicate note id", "note_id", note.note_id)
        self.notes[note.note_id] = copy.deepcopy(note)
        return copy.deepcopy(note)

    async def get_note(self, note_id: str) -> NoteRecord | None:
        note = self.notes.get(note_id)
        return copy.deepcopy(note) if note else None

    async def update_note(self, note_id: str, /, **fields: Any) -> NoteRecord:
        note = self.notes.get(note_id)
        if note is None:
            raise NotFoundError("Note", note_id)
        if "note_id" in fields:
            raise ValidationException("Note id is immutable", "note_id")
        updated = replace(note, **{"updated_at": datetime.now(UTC), **fields})
        self.notes[note_id] = updated
        return copy.deepcopy(updated)

    # ------------------------------------------------------------------
    # Stakes and rewards
    # ------------------------------------------------------------------

    async def insert_stake(self, stake: StakeCommitment) -> StakeCommitment:
        self.stakes.append(copy.deepcopy(stake))
        return copy.deepcopy(stake)

    async def list_stakes(self, note_id: str) -> list[StakeCommitment]:
        return [copy.deepcopy(s) for s in self.stakes if s.note_id == note_id]

    async def insert_reward(self, reward: RewardRecord) -> RewardRecord:
        self.rewards.append(copy.deepcopy(reward))
        return copy.deepcopy(reward)

    async def list_rewards(self, note_id: str | None = None) -> list[RewardRecord]:
        return [copy.deepcopy(r) for r in self.rewards if note_id is None or r.note_id == note_id]

    async def health_check(self) -> bool:
        return self.healthy
