"""Health-claim workflow: the five-stage verification pipeline.

Pipeline:
  1. validation        - parameter checks and collaborator health checks
  2. ai-analysis       - cached by claim fingerprint, bounded by the analysis timeout
  3. claim-storage     - ClaimRecord with status ``published``
  4. ledger-publishing - JSON-LD asset, bounded by the ledger timeout (unbounded by default)
  5. finalization      - NoteRecord and auto-stake, settled concurrently

Stages 1-4 run strictly in order. Nothing is rolled back: a failure after
stage 3 leaves the claim record in place and the result reports it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any
from uuid import uuid4

from ..core.config import StageTimeouts, WorkflowSettings, get_config
from ..core.exceptions import (
    ClaimflowException,
    LedgerPublishError,
    ServiceUnavailableError,
    ValidationException,
)
from ..core.logging import correlation_context, get_correlation_id
from .assets import build_claim_asset
from .cache import WorkflowCache, cache_key
from .constants import (
    OPERATION_AI_ANALYSIS,
    OPERATION_LEDGER_PUBLISHING,
    OPERATION_TOKEN_STAKING,
    WorkflowConstants,
)
from .enums import StakePosition, WorkflowStep
from .interfaces import (
    AnalysisProvider,
    LedgerPublisher,
    PersistenceStore,
    ProgressCallback,
    StakeLedger,
)
from .models import (
    AgentIdentity,
    AnalysisResult,
    ClaimRecord,
    HealthReport,
    NoteRecord,
    StakeCommitment,
    WorkflowResult,
)
from .progress import ProgressReporter
from .timeouts import effective_timeout_ms, with_timeout

logger = logging.getLogger(__name__)

STEP_MESSAGES = {
    WorkflowStep.VALIDATION: "Validating request parameters and checking service health",
    WorkflowStep.AI_ANALYSIS: "Performing AI analysis of health claim",
    WorkflowStep.CLAIM_STORAGE: "Storing claim and analysis data",
    WorkflowStep.LEDGER_PUBLISHING: "Publishing knowledge asset to the ledger",
    WorkflowStep.FINALIZATION: "Finalizing workflow with staking and note storage",
}


def stake_reasoning(agent: AgentIdentity, analysis: AnalysisResult) -> str:
    """Reasoning attached to the submitting agent's auto-stake."""
    summary = analysis.summary[: WorkflowConstants.STAKE_REASONING_SUMMARY_CHARS]
    return f"AI analysis by {agent.display_name}: {summary}..."


def _error_message(error: BaseException) -> str:
    if isinstance(error, ClaimflowException):
        return error.message
    return str(error) or error.__class__.__name__


class HealthClaimWorkflow:
    """Drives one claim from raw text to a published, staked note."""

    def __init__(
        self,
        analysis_provider: AnalysisProvider,
        ledger_publisher: LedgerPublisher,
        stake_ledger: StakeLedger,
        store: PersistenceStore,
        settings: WorkflowSettings | None = None,
        cache: WorkflowCache[AnalysisResult] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.analysis_provider = analysis_provider
        self.ledger_publisher = ledger_publisher
        self.stake_ledger = stake_ledger
        self.store = store
        self.settings = settings or get_config()
        self.cache = cache if cache is not None else WorkflowCache(default_ttl_ms=self.settings.cache_ttl_ms)
        self._clock = clock

    # ------------------------------------------------------------------
    # Health checks
    # ------------------------------------------------------------------

    async def perform_health_checks(self) -> HealthReport:
        """Check every collaborator concurrently. A raising check counts as unhealthy."""
        names = ("analysis_provider", "ledger_publisher", "stake_ledger", "database")
        outcomes = await asyncio.gather(
            self.analysis_provider.health_check(),
            self.ledger_publisher.health_check(),
            self.stake_ledger.health_check(),
            self.store.health_check(),
            return_exceptions=True,
        )

        checks: dict[str, bool] = {}
        for name, outcome in zip(names, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.warning(f"{name} health check failed: {outcome}")
                checks[name] = False
            else:
                checks[name] = outcome is True

        report = HealthReport(**checks)
        logger.info(f"Health check completed: {report.to_dict()}")
        return report

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(
        self,
        agent: AgentIdentity,
        claim_text: str,
        context: dict[str, Any] | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> WorkflowResult:
        """Run the full pipeline for one claim.

        Never raises for workflow failures: every error ends up in
        ``WorkflowResult.errors``, with any identifiers already written.
        """
        with correlation_context(get_correlation_id()):
            started = self._clock()
            timeouts = self.settings.effective_timeouts()
            result = WorkflowResult(success=False)
            reporter = ProgressReporter(
                progress_callback,
                total_workflow_ms=timeouts.total_workflow,
                heartbeat_interval_ms=self.settings.heartbeat_interval_ms,
                heartbeat_enabled=self.settings.progress_enabled,
            )

            try:
                await self._run(agent, claim_text, context, timeouts, reporter, result)
            except Exception as e:
                message = _error_message(e)
                result.errors.append(message)
                logger.error(
                    f"Health claim workflow failed: {message}",
                    exc_info=not isinstance(e, ClaimflowException),
                )

            result.success = not result.errors
            result.execution_time_ms = int((self._clock() - started) * 1000)
            if result.success:
                result.progress = reporter.snapshot(
                    "completed", WorkflowConstants.TOTAL_STEPS, WorkflowConstants.TOTAL_STEPS,
                    "Workflow completed successfully",
                )
            else:
                last_step = reporter.last_progress.step_number if reporter.last_progress else 0
                result.progress = reporter.snapshot(
                    "failed", last_step, WorkflowConstants.TOTAL_STEPS,
                    f"Workflow failed: {'; '.join(result.errors)}",
                )

            logger.info(
                f"Health claim workflow finished: success={result.success} "
                f"errors={len(result.errors)} in {result.execution_time_ms}ms",
                extra={
                    "agent_id": agent.agent_id if agent else None,
                    "claim_id": result.claim_id,
                    "note_id": result.note_id,
                    "stake_id": result.stake_id,
                    "ledger_asset_id": result.ledger_asset_id,
                },
            )
            return result

    async def _run(
        self,
        agent: AgentIdentity,
        claim_text: str,
        context: dict[str, Any] | None,
        timeouts: StageTimeouts,
        reporter: ProgressReporter,
        result: WorkflowResult,
    ) -> None:
        # Stage 1: validation, before any collaborator is touched
        if not claim_text or not claim_text.strip():
            raise ValidationException("Claim cannot be empty", "claim_text")
        if agent is None or not agent.agent_id:
            raise ValidationException("Agent identity is required", "agent_id")

        health = await self.perform_health_checks()
        if not health.overall:
            raise ServiceUnavailableError(health.unhealthy())

        logger.info(
            f"Starting health claim workflow for agent {agent.agent_id} "
            f"(claim_length={len(claim_text)}, context={context is not None}, "
            f"mode={self.settings.performance_mode}, timeouts={timeouts.describe()})"
        )

        async with reporter:
            self._report(reporter, WorkflowStep.VALIDATION)

            # Stage 2: analysis
            self._report(reporter, WorkflowStep.AI_ANALYSIS)
            analysis = await self._analyze(claim_text, context, timeouts)

            # Stage 3: claim record
            self._report(reporter, WorkflowStep.CLAIM_STORAGE)
            claim = await self.store.insert_claim(
                ClaimRecord.from_analysis(claim_text, agent.agent_id, analysis)
            )
            result.claim_id = claim.claim_id
            logger.info(
                f"Stored claim {claim.claim_id} (verdict={analysis.verdict.value})",
                extra={"claim_id": claim.claim_id, "agent_id": agent.agent_id, "step": WorkflowStep.CLAIM_STORAGE.value},
            )

            # Stage 4: ledger publication
            self._report(reporter, WorkflowStep.LEDGER_PUBLISHING)
            asset = build_claim_asset(claim.claim_id, claim_text, analysis, agent, context)
            receipt = await with_timeout(
                self.ledger_publisher.publish(asset, WorkflowConstants.ASSET_VISIBILITY),
                effective_timeout_ms(timeouts.ledger_publish, timeouts.total_workflow),
                OPERATION_LEDGER_PUBLISHING,
            )
            if not receipt.asset_id:
                raise LedgerPublishError("Ledger returned no asset id")
            result.ledger_asset_id = receipt.asset_id
            logger.info(
                f"Published claim {claim.claim_id} as {receipt.asset_id}",
                extra={"claim_id": claim.claim_id, "ledger_asset_id": receipt.asset_id, "step": WorkflowStep.LEDGER_PUBLISHING.value},
            )

            # Stage 5: note and stake, settle-all
            self._report(reporter, WorkflowStep.FINALIZATION)
            await self._finalize(agent, claim, analysis, receipt.asset_id, timeouts, result)

    def _report(self, reporter: ProgressReporter, step: WorkflowStep) -> None:
        reporter.report(step.value, step.number, WorkflowConstants.TOTAL_STEPS, STEP_MESSAGES[step])

    async def _analyze(
        self,
        claim_text: str,
        context: dict[str, Any] | None,
        timeouts: StageTimeouts,
    ) -> AnalysisResult:
        key = cache_key(claim_text)
        if self.settings.cache_enabled:
            cached = self.cache.get(key)
            if cached is not None:
                logger.info(f"Using cached analysis ({key[:24]}...)")
                return cached

        analysis = await with_timeout(
            self.analysis_provider.analyze(claim_text, context),
            effective_timeout_ms(timeouts.ai_analysis, timeouts.total_workflow),
            OPERATION_AI_ANALYSIS,
        )
        if self.settings.cache_enabled:
            self.cache.set(key, analysis)
        return analysis

    async def _finalize(
        self,
        agent: AgentIdentity,
        claim: ClaimRecord,
        analysis: AnalysisResult,
        asset_id: str,
        timeouts: StageTimeouts,
        result: WorkflowResult,
    ) -> None:
        note = NoteRecord(
            claim_id=claim.claim_id,
            summary=analysis.summary,
            confidence=analysis.confidence,
            verdict=analysis.verdict,
            sources=list(analysis.sources),
            ledger_asset_id=asset_id,
        )

        log_fields = {"claim_id": claim.claim_id, "note_id": note.note_id, "step": WorkflowStep.FINALIZATION.value}
        note_outcome, stake_outcome = await asyncio.gather(
            self.store.insert_note(note),
            self._auto_stake(agent, note.note_id, analysis, timeouts),
            return_exceptions=True,
        )

        if isinstance(note_outcome, BaseException):
            message = f"Community note storage failed: {_error_message(note_outcome)}"
            result.errors.append(message)
            logger.error(message, extra=log_fields)
        else:
            result.note_id = note_outcome.note_id

        if isinstance(stake_outcome, BaseException):
            message = f"Token staking failed: {_error_message(stake_outcome)}"
            result.errors.append(message)
            logger.error(message, extra=log_fields)
        else:
            result.stake_id = stake_outcome

    async def _auto_stake(
        self,
        agent: AgentIdentity,
        note_id: str,
        analysis: AnalysisResult,
        timeouts: StageTimeouts,
    ) -> str:
        """Stake on the submitting agent's own verdict. Returns the stake id."""
        if self.settings.skip_staking:
            stake_id = f"skipped_{uuid4().hex[:12]}"
            logger.info(f"Fast mode: skipping auto-stake for note {note_id} ({stake_id})")
            return stake_id

        amount = WorkflowConstants.DEFAULT_STAKE_AMOUNT
        position = StakePosition.for_verdict(analysis.verdict)
        reasoning = stake_reasoning(agent, analysis)

        receipt = await with_timeout(
            self.stake_ledger.stake(note_id, amount, position.value, reasoning),
            effective_timeout_ms(timeouts.token_stake, timeouts.total_workflow),
            OPERATION_TOKEN_STAKING,
        )
        await self.store.insert_stake(
            StakeCommitment(
                stake_id=receipt.stake_id,
                note_id=note_id,
                staker_id=agent.agent_id,
                amount=amount,
                position=position,
                reasoning=reasoning,
                tx_hash=receipt.tx_hash,
            )
        )
        logger.info(
            f"Auto-stake {receipt.stake_id} committed: {amount} {position.value} on note {note_id}",
            extra={"agent_id": agent.agent_id, "note_id": note_id, "stake_id": receipt.stake_id},
        )
        return receipt.stake_id
