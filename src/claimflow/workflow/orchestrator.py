"""Workflow orchestrator: the single entry point into claim verification.

Usage:
    orchestrator = WorkflowOrchestrator()
    await orchestrator.initialize(WorkflowServices(
        analysis_provider=provider,
        ledger_publisher=publisher,
        stake_ledger=ledger,
        store=store,
    ))
    result = await orchestrator.execute_health_claim_workflow(agent, "Vitamin C prevents the common cold")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..core.config import WorkflowSettings, get_config
from ..core.exceptions import NotInitializedError
from .agents import AgentRegistry
from .cache import WorkflowCache
from .consensus import ConsensusEvaluator
from .health_claim import HealthClaimWorkflow
from .interfaces import (
    AnalysisProvider,
    LedgerPublisher,
    PersistenceStore,
    ProgressCallback,
    StakeLedger,
)
from .maintenance import MaintenanceWorkflow
from .models import AgentIdentity, AnalysisResult, ConsensusResult, HealthReport, WorkflowResult
from .rewards import RewardDistributionWorkflow

logger = logging.getLogger(__name__)


@dataclass
class WorkflowServices:
    """Collaborators wired into the workflows by ``initialize``."""
    analysis_provider: AnalysisProvider
    ledger_publisher: LedgerPublisher
    stake_ledger: StakeLedger
    store: PersistenceStore
    agents: AgentRegistry | None = None
    cache: WorkflowCache[AnalysisResult] | None = None


class WorkflowOrchestrator:
    """Wires collaborators into the workflows and delegates to them."""

    def __init__(self, settings: WorkflowSettings | None = None):
        self.settings = settings or get_config()
        self.agents: AgentRegistry | None = None
        self.cache: WorkflowCache[AnalysisResult] | None = None
        self._health_claim: HealthClaimWorkflow | None = None
        self._rewards: RewardDistributionWorkflow | None = None
        self._maintenance: MaintenanceWorkflow | None = None
        self._consensus: ConsensusEvaluator | None = None
        self._initialized = False

    async def initialize(self, services: WorkflowServices) -> None:
        """Wire collaborators. Calling it again on a ready orchestrator is a no-op."""
        if self._initialized:
            logger.debug("Workflow orchestrator already initialized")
            return

        self.agents = services.agents if services.agents is not None else AgentRegistry()
        self.cache = services.cache if services.cache is not None else WorkflowCache(
            default_ttl_ms=self.settings.cache_ttl_ms
        )
        self._consensus = ConsensusEvaluator(services.store)
        self._health_claim = HealthClaimWorkflow(
            analysis_provider=services.analysis_provider,
            ledger_publisher=services.ledger_publisher,
            stake_ledger=services.stake_ledger,
            store=services.store,
            settings=self.settings,
            cache=self.cache,
        )
        self._rewards = RewardDistributionWorkflow(
            stake_ledger=services.stake_ledger,
            store=services.store,
            consensus=self._consensus,
            agents=self.agents,
        )
        self._maintenance = MaintenanceWorkflow(self.cache)
        self._initialized = True
        logger.info(f"Workflow orchestrator initialized (mode={self.settings.performance_mode})")

    def is_initialized(self) -> bool:
        return self._initialized

    def _require(self, component: Any) -> Any:
        if not self._initialized or component is None:
            raise NotInitializedError("Workflow orchestrator")
        return component

    # ------------------------------------------------------------------
    # Delegation
    # ------------------------------------------------------------------

    async def execute_health_claim_workflow(
        self,
        agent: AgentIdentity,
        claim_text: str,
        context: dict[str, Any] | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> WorkflowResult:
        workflow: HealthClaimWorkflow = self._require(self._health_claim)
        tracked = agent is not None and bool(agent.agent_id) and self.agents is not None
        if tracked:
            agent = self.agents.get(agent.agent_id) or agent

        result = await workflow.execute(agent, claim_text, context, progress_callback)

        # Only agents with a stored claim enter the registry
        if tracked and result.claim_id is not None:
            self.agents.track(agent)
        return result

    async def execute_reward_distribution_workflow(self, note_id: str) -> WorkflowResult:
        workflow: RewardDistributionWorkflow = self._require(self._rewards)
        return await workflow.execute(note_id)

    async def execute_maintenance_workflow(self) -> WorkflowResult:
        workflow: MaintenanceWorkflow = self._require(self._maintenance)
        return await workflow.execute()

    async def get_consensus_verdict(self, note_id: str) -> ConsensusResult:
        evaluator: ConsensusEvaluator = self._require(self._consensus)
        return await evaluator.get_consensus_verdict(note_id)

    async def perform_health_checks(self) -> HealthReport:
        workflow: HealthClaimWorkflow = self._require(self._health_claim)
        return await workflow.perform_health_checks()
