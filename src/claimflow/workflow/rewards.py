"""Reward distribution workflow.

Once a note has reached consensus, the stake ledger decides who is paid
and how much. Each reward is recorded, the claim is marked verified or
disputed, and each rewarded agent's trust score moves toward the
accuracy it was rewarded for.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..core.exceptions import ClaimflowException, NotFoundError
from ..core.logging import correlation_context, get_correlation_id
from .agents import AgentRegistry
from .consensus import ConsensusEvaluator
from .enums import ClaimStatus
from .interfaces import PersistenceStore, StakeLedger
from .models import ClaimRecord, ConsensusResult, WorkflowResult

logger = logging.getLogger(__name__)

_SETTLED = (ClaimStatus.VERIFIED, ClaimStatus.DISPUTED)


class RewardDistributionWorkflow:
    """Pays out accurate participants once a note reaches consensus."""

    def __init__(
        self,
        stake_ledger: StakeLedger,
        store: PersistenceStore,
        consensus: ConsensusEvaluator | None = None,
        agents: AgentRegistry | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stake_ledger = stake_ledger
        self.store = store
        self.consensus = consensus or ConsensusEvaluator(store)
        self.agents = agents
        self._clock = clock

    async def execute(self, note_id: str) -> WorkflowResult:
        """Distribute rewards for a note.

        A note without consensus is not an error: the result is a success
        with no rewards.
        """
        with correlation_context(get_correlation_id()):
            started = self._clock()
            result = WorkflowResult(success=False, note_id=note_id)
            try:
                logger.info(f"Starting reward distribution for note {note_id}")
                consensus = await self.consensus.get_consensus_verdict(note_id)
                result.details["consensus"] = consensus.to_dict()

                if not consensus.has_consensus:
                    logger.info(f"No consensus reached yet for note {note_id}, skipping rewards")
                    result.details["total_rewards"] = 0.0
                else:
                    await self._distribute(note_id, consensus, result)
            except Exception as e:
                message = e.message if isinstance(e, ClaimflowException) else str(e)
                result.errors.append(message)
                logger.error(
                    f"Reward distribution failed for note {note_id}: {message}",
                    exc_info=not isinstance(e, ClaimflowException),
                    extra={"note_id": note_id},
                )

            result.success = not result.errors
            result.execution_time_ms = int((self._clock() - started) * 1000)
            return result

    async def _distribute(self, note_id: str, consensus: ConsensusResult, result: WorkflowResult) -> None:
        claim = await self._claim_for_note(note_id)
        result.claim_id = claim.claim_id

        existing = await self.store.list_rewards(note_id)
        if existing or claim.status in _SETTLED:
            result.rewards.extend(existing)
            result.details["total_rewards"] = sum(r.amount for r in existing)
            result.details["already_distributed"] = True
            logger.info(
                f"Rewards for note {note_id} already distributed (claim {claim.status.value}), skipping",
                extra={"note_id": note_id, "claim_id": claim.claim_id},
            )
            return

        summary = await self.stake_ledger.calculate_rewards(note_id, consensus.final_verdict)

        for reward in summary.individual_rewards:
            result.rewards.append(await self.store.insert_reward(reward))
            if self.agents is not None and self.agents.get(reward.agent_id) is not None:
                self.agents.update_trust_score(reward.agent_id, reward.accuracy_score)

        result.details["total_rewards"] = summary.total_rewards
        logger.info(
            f"Distributed {summary.total_rewards:.4f} to {len(summary.individual_rewards)} "
            f"participants for note {note_id} (verdict={consensus.final_verdict})",
            extra={"note_id": note_id, "claim_id": claim.claim_id},
        )

        status = ClaimStatus.VERIFIED if claim.verdict.value == consensus.final_verdict else ClaimStatus.DISPUTED
        await self.store.update_claim(claim.claim_id, status=status)
        logger.info(f"Claim {claim.claim_id} marked {status.value}", extra={"claim_id": claim.claim_id})

    async def _claim_for_note(self, note_id: str) -> ClaimRecord:
        note = await self.store.get_note(note_id)
        if note is None:
            raise NotFoundError("Note", note_id)
        claim = await self.store.get_claim(note.claim_id)
        if claim is None:
            raise NotFoundError("Claim", note.claim_id)
        return claim
