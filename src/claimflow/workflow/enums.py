"""Enums for claim verification workflows.

Contains the verdicts an analysis can reach, the lifecycle of a claim,
stake positions and the named steps a workflow run reports.
"""

from __future__ import annotations

from enum import Enum


class Verdict(str, Enum):
    """Assessment of a claim."""
    TRUE = "true"
    FALSE = "false"
    MISLEADING = "misleading"    # Contains truth but draws the wrong conclusion
    UNCERTAIN = "uncertain"      # Evidence insufficient either way


class ClaimStatus(str, Enum):
    """Lifecycle of a claim record."""
    ANALYZING = "analyzing"
    PUBLISHED = "published"      # Analysis stored and sent to the ledger
    VERIFIED = "verified"        # Consensus agreed with the analysis
    DISPUTED = "disputed"        # Consensus disagreed with the analysis


class StakePosition(str, Enum):
    """Side a stake commitment backs."""
    SUPPORT = "support"
    OPPOSE = "oppose"

    @classmethod
    def for_verdict(cls, verdict: Verdict | str) -> StakePosition:
        """Only an explicit "false" opposes; every other verdict supports."""
        value = verdict.value if isinstance(verdict, Verdict) else str(verdict)
        return cls.OPPOSE if value == Verdict.FALSE.value else cls.SUPPORT

    def as_verdict(self) -> str:
        return Verdict.TRUE.value if self is StakePosition.SUPPORT else Verdict.FALSE.value


class PerformanceMode(str, Enum):
    """Timeout profile for workflow runs."""
    BALANCED = "balanced"
    FAST = "fast"


class WorkflowStep(str, Enum):
    """Named steps of the health-claim workflow, in execution order."""
    VALIDATION = "validation"
    AI_ANALYSIS = "ai-analysis"
    CLAIM_STORAGE = "claim-storage"
    LEDGER_PUBLISHING = "ledger-publishing"
    FINALIZATION = "finalization"

    @property
    def number(self) -> int:
        return list(WorkflowStep).index(self) + 1
