"""Claim verification workflows.

Analysis, ledger publication, staking, consensus and reward distribution,
composed behind ``WorkflowOrchestrator``.
"""

from .agents import AgentRegistry, derive_wallet_address, validate_wallet_address
from .assets import build_claim_asset
from .cache import WorkflowCache, cache_key
from .consensus import ConsensusEvaluator, evaluate_consensus, tally
from .constants import WorkflowConstants
from .enums import ClaimStatus, PerformanceMode, StakePosition, Verdict, WorkflowStep
from .health_claim import HealthClaimWorkflow
from .interfaces import (
    AnalysisProvider,
    LedgerPublisher,
    PersistenceStore,
    ProgressCallback,
    StakeLedger,
)
from .maintenance import MaintenanceWorkflow
from .models import (
    AgentIdentity,
    AnalysisResult,
    ClaimRecord,
    ConsensusResult,
    HealthReport,
    NoteRecord,
    PublishReceipt,
    RewardRecord,
    RewardSummary,
    StakeCommitment,
    StakeReceipt,
    WorkflowProgress,
    WorkflowRequest,
    WorkflowResult,
)
from .orchestrator import WorkflowOrchestrator, WorkflowServices
from .progress import ProgressReporter
from .rewards import RewardDistributionWorkflow
from .timeouts import effective_timeout_ms, with_timeout

__all__ = [
    # Enums
    "ClaimStatus",
    "PerformanceMode",
    "StakePosition",
    "Verdict",
    "WorkflowStep",
    # Models
    "AgentIdentity",
    "AnalysisResult",
    "ClaimRecord",
    "ConsensusResult",
    "HealthReport",
    "NoteRecord",
    "PublishReceipt",
    "RewardRecord",
    "RewardSummary",
    "StakeCommitment",
    "StakeReceipt",
    "WorkflowProgress",
    "WorkflowRequest",
    "WorkflowResult",
    # Interfaces
    "AnalysisProvider",
    "LedgerPublisher",
    "PersistenceStore",
    "ProgressCallback",
    "StakeLedger",
    # Building blocks
    "WorkflowConstants",
    "WorkflowCache",
    "cache_key",
    "ProgressReporter",
    "with_timeout",
    "effective_timeout_ms",
    "build_claim_asset",
    "ConsensusEvaluator",
    "evaluate_consensus",
    "tally",
    "AgentRegistry",
    "derive_wallet_address",
    "validate_wallet_address",
    # Workflows
    "HealthClaimWorkflow",
    "RewardDistributionWorkflow",
    "MaintenanceWorkflow",
    "WorkflowOrchestrator",
    "WorkflowServices",
]
