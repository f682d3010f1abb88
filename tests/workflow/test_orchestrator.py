"""Tests for claimflow.workflow.orchestrator - the workflow facade."""

from __future__ import annotations

import pytest

from claimflow.core.exceptions import NotInitializedError
from claimflow.workflow.agents import AgentRegistry
from claimflow.workflow.cache import WorkflowCache
from claimflow.workflow.models import StakeCommitment
from claimflow.workflow.orchestrator import WorkflowOrchestrator, WorkflowServices


@pytest.fixture
def services(analysis_provider, ledger_publisher, stake_ledger, store) -> WorkflowServices:
    return WorkflowServices(
        analysis_provider=analysis_provider,
        ledger_publisher=ledger_publisher,
        stake_ledger=stake_ledger,
        store=store,
    )


@pytest.fixture
async def orchestrator(settings, services) -> WorkflowOrchestrator:
    orch = WorkflowOrchestrator(settings)
    await orch.initialize(services)
    return orch


class TestInitialization:
    """Tests for initialize() and readiness checks."""

    async def test_not_initialized(self, settings, agent):
        orch = WorkflowOrchestrator(settings)

        assert orch.is_initialized() is False
        with pytest.raises(NotInitializedError, match="Workflow orchestrator not initialized"):
            await orch.execute_health_claim_workflow(agent, "Some claim")
        with pytest.raises(NotInitializedError):
            await orch.execute_reward_distribution_workflow("note")
        with pytest.raises(NotInitializedError):
            await orch.execute_maintenance_workflow()
        with pytest.raises(NotInitializedError):
            await orch.get_consensus_verdict("note")
        with pytest.raises(NotInitializedError):
            await orch.perform_health_checks()

    async def test_initialize_is_idempotent(self, settings, services):
        orch = WorkflowOrchestrator(settings)
        await orch.initialize(services)
        cache = orch.cache

        await orch.initialize(services)

        assert orch.is_initialized() is True
        assert orch.cache is cache

    async def test_uses_supplied_registry_and_cache(self, settings, services, clock):
        services.agents = AgentRegistry()
        services.cache = WorkflowCache(default_ttl_ms=10, clock=clock)
        orch = WorkflowOrchestrator(settings)

        await orch.initialize(services)

        assert orch.agents is services.agents
        assert orch.cache is services.cache

    async def test_default_cache_ttl_from_settings(self, make_settings, services):
        orch = WorkflowOrchestrator(make_settings(cache_ttl_ms=42))

        await orch.initialize(services)

        assert orch.cache.default_ttl_ms == 42


class TestDelegation:
    async def test_health_claim_workflow(self, orchestrator, agent, store):
        result = await orchestrator.execute_health_claim_workflow(agent, "Vitamin C prevents the common cold")

        assert result.success is True
        assert result.claim_id in store.claims
        assert orchestrator.agents.get("demo_agent_001") is not None

    async def test_rejected_claim_leaves_registry_untouched(self, orchestrator, agent, store):
        result = await orchestrator.execute_health_claim_workflow(agent, "   ")

        assert result.success is False
        assert result.errors == ["Claim cannot be empty"]
        assert orchestrator.agents.get("demo_agent_001") is None
        assert store.claims == {}

    async def test_registered_identity_used_for_run(self, orchestrator, agent, store):
        registered = orchestrator.agents.register("demo_agent_001", display_name="Registered Name")
        active_before = registered.last_active

        result = await orchestrator.execute_health_claim_workflow(agent, "Vitamin C prevents the common cold")

        assert result.success is True
        assert orchestrator.agents.get("demo_agent_001") is registered
        assert registered.last_active >= active_before

    async def test_end_to_end_rewards(self, orchestrator, agent, store):
        result = await orchestrator.execute_health_claim_workflow(agent, "Vitamin C prevents the common cold")
        for staker in ("peer_1", "peer_2"):
            await store.insert_stake(
                StakeCommitment(note_id=result.note_id, staker_id=staker, amount=1.0, position="support")
            )

        consensus = await orchestrator.get_consensus_verdict(result.note_id)
        rewards = await orchestrator.execute_reward_distribution_workflow(result.note_id)

        assert consensus.has_consensus is True
        assert consensus.final_verdict == "true"
        assert rewards.success is True
        assert {r.agent_id for r in rewards.rewards} == {"demo_agent_001", "peer_1", "peer_2"}
        assert orchestrator.agents.get("demo_agent_001").trust_score > 0.5

    async def test_maintenance(self, orchestrator):
        result = await orchestrator.execute_maintenance_workflow()

        assert result.success is True
        assert "cache" in result.details

    async def test_health_checks(self, orchestrator, ledger_publisher):
        ledger_publisher.healthy = False

        report = await orchestrator.perform_health_checks()

        assert report.overall is False
        assert report.ledger_publisher is False
