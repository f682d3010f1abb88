"""Local stake ledger.

Simulates the token side of staking over a persistence store: it checks
stakes against the minimum, issues stake receipts with a running
consensus snapshot, and computes rewards for a settled note. It does not
move tokens; transaction ids are deterministic digests.

Reward rules:
- pool = sum of staked amounts on the note x reward multiplier
- participants: the agent that analysed the claim (claimed verdict = the
  claim's verdict, accuracy = analysis confidence) and every staker
  (claimed verdict "true" for support, "false" for oppose, accuracy 1.0)
- participants whose claimed verdict matches consensus split the pool in
  proportion to their accuracy
"""

from __future__ import annotations

import hashlib
import logging
from uuid import uuid4

from ..core.config import WorkflowSettings, get_config
from ..core.exceptions import NotFoundError, StakeLedgerError
from ..workflow.enums import StakePosition
from ..workflow.interfaces import PersistenceStore
from ..workflow.models import RewardRecord, RewardSummary, StakeReceipt

logger = logging.getLogger(__name__)


def _tx_hash(*parts: str) -> str:
    return "0x" + hashlib.sha256(":".join(parts).encode("utf-8")).hexdigest()


class LocalStakeLedger:
    """``StakeLedger`` that keeps its books in the persistence store."""

    def __init__(
        self,
        store: PersistenceStore,
        minimum_stake: float | None = None,
        reward_multiplier: float | None = None,
        settings: WorkflowSettings | None = None,
    ):
        settings = settings or get_config()
        self.store = store
        self.minimum_stake = settings.minimum_stake if minimum_stake is None else minimum_stake
        self.reward_multiplier = settings.reward_multiplier if reward_multiplier is None else reward_multiplier
        self.healthy = True

    async def stake(self, note_id: str, amount: float, position: str, reasoning: str) -> StakeReceipt:
        """Accept a stake and return its receipt.

        Raises:
            StakeLedgerError: If the amount is below the minimum or the position is unknown
        """
        if amount < self.minimum_stake:
            raise StakeLedgerError(f"Minimum stake is {self.minimum_stake} tokens")
        try:
            side = StakePosition(position)
        except ValueError:
            raise StakeLedgerError(f"Invalid stake position: {position}") from None

        snapshot = {"support": 0.0, "oppose": 0.0}
        for existing in await self.store.list_stakes(note_id):
            snapshot[existing.position.value] += existing.amount
        snapshot[side.value] += amount

        stake_id = f"stake_{uuid4().hex}"
        receipt = StakeReceipt(
            stake_id=stake_id,
            consensus_snapshot=snapshot,
            tx_hash=_tx_hash(stake_id, note_id, side.value, str(amount)),
        )
        logger.info(f"Stake {stake_id} accepted: {amount} {side.value} on note {note_id} (snapshot={snapshot})")
        return receipt

    async def calculate_rewards(self, note_id: str, final_verdict: str) -> RewardSummary:
        """Split the note's stake pool among participants matching ``final_verdict``.

        Raises:
            NotFoundError: If the note or its claim does not exist
        """
        note = await self.store.get_note(note_id)
        if note is None:
            raise NotFoundError("Note", note_id)
        claim = await self.store.get_claim(note.claim_id)
        if claim is None:
            raise NotFoundError("Claim", note.claim_id)
        stakes = await self.store.list_stakes(note_id)

        pool = sum(s.amount for s in stakes) * self.reward_multiplier

        # (agent_id, claimed_verdict, accuracy, reason)
        participants: list[tuple[str, str, float, str]] = [
            (claim.agent_id, claim.verdict.value, claim.confidence, "Accurate claim analysis"),
        ]
        for s in stakes:
            participants.append((s.staker_id, s.position.as_verdict(), 1.0, "Stake aligned with consensus"))

        winners = [p for p in participants if p[1] == final_verdict and p[2] > 0]
        total_accuracy = sum(p[2] for p in winners)
        if pool <= 0 or total_accuracy <= 0:
            logger.info(f"No rewards for note {note_id}: pool={pool} winners={len(winners)}")
            return RewardSummary(total_rewards=0.0, individual_rewards=[])

        rewards = []
        for index, (agent_id, claimed, accuracy, reason) in enumerate(winners):
            rewards.append(
                RewardRecord(
                    agent_id=agent_id,
                    note_id=note_id,
                    amount=pool * accuracy / total_accuracy,
                    accuracy_score=accuracy,
                    claimed_verdict=claimed,
                    final_verdict=final_verdict,
                    ledger_tx_id=_tx_hash("reward", note_id, agent_id, str(index)),
                    reason=reason,
                )
            )

        logger.info(f"Calculated rewards for note {note_id}: pool={pool:.4f} across {len(rewards)} participants")
        return RewardSummary(total_rewards=sum(r.amount for r in rewards), individual_rewards=rewards)

    async def health_check(self) -> bool:
        return self.healthy
