"""Consensus evaluation over stake commitments.

A note reaches consensus once at least ``MIN_CONSENSUS_STAKES``
commitments exist. The final verdict is "true" only when supporting
commitments form a strict majority; an even split resolves to "false".
Commitments are counted, not weighted by amount.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from .constants import WorkflowConstants
from .enums import StakePosition, Verdict
from .interfaces import PersistenceStore
from .models import ConsensusResult, StakeCommitment

logger = logging.getLogger(__name__)


def tally(stakes: Iterable[StakeCommitment]) -> dict[str, Any]:
    """Count and sum commitments by position. Informational only."""
    summary: dict[str, Any] = {
        "support": 0,
        "oppose": 0,
        "support_amount": 0.0,
        "oppose_amount": 0.0,
        "total": 0,
    }
    for stake in stakes:
        side = stake.position.value
        summary[side] += 1
        summary[f"{side}_amount"] += stake.amount
        summary["total"] += 1
    return summary


def evaluate_consensus(stakes: list[StakeCommitment]) -> ConsensusResult:
    """Majority verdict over ``stakes``."""
    total = len(stakes)
    if total < WorkflowConstants.MIN_CONSENSUS_STAKES:
        return ConsensusResult(has_consensus=False, final_verdict="", total_stakes=total)

    support = sum(1 for s in stakes if s.position is StakePosition.SUPPORT)
    final = Verdict.TRUE if support > total / 2 else Verdict.FALSE
    return ConsensusResult(has_consensus=True, final_verdict=final.value, total_stakes=total)


class ConsensusEvaluator:
    """Reads a note's commitments from the store and decides its verdict."""

    def __init__(self, store: PersistenceStore):
        self.store = store

    async def get_consensus_verdict(self, note_id: str) -> ConsensusResult:
        stakes = await self.store.list_stakes(note_id)
        result = evaluate_consensus(stakes)
        if result.has_consensus:
            logger.info(f"Consensus for note {note_id}: {result.final_verdict} ({tally(stakes)})")
        else:
            logger.debug(
                f"No consensus for note {note_id}: {result.total_stakes} of "
                f"{WorkflowConstants.MIN_CONSENSUS_STAKES} required stakes"
            )
        return result
