#!/usr/bin/env python3
"""Claimflow Demo - walk one health claim through verification and rewards.

Runs entirely in process: an in-memory store, the local stake ledger and a
simulated edge node behind the real HTTP ledger client. Set OPENAI_API_KEY
(and optionally OPENAI_BASE_URL / OPENAI_MODEL) to analyse the claim with a
real model; otherwise a canned analysis is used.

Prerequisites:
    - pip install -e '.[llm]'

Usage:
    python examples/demo.py
    CLAIMFLOW_PERFORMANCE_MODE=fast python examples/demo.py
"""

from __future__ import annotations

import asyncio
import json
import os
import sys

import httpx

from claimflow.adapters import (
    HttpLedgerPublisher,
    InMemoryStore,
    LLMAnalysisProvider,
    LocalStakeLedger,
    create_openai_backend,
)
from claimflow.core import configure_logging, get_config
from claimflow.workflow import StakeCommitment, WorkflowOrchestrator, WorkflowProgress, WorkflowServices

CLAIM = "Vitamin C prevents the common cold"

CANNED_ANALYSIS = {
    "verdict": "misleading",
    "confidence": 0.85,
    "summary": (
        "Regular vitamin C supplementation does not prevent colds in the general population, "
        "though it may slightly shorten their duration."
    ),
    "sources": ["Cochrane Database of Systematic Reviews (2013)", "NIH Office of Dietary Supplements"],
}


def pp(label: str, data: dict) -> None:
    """Pretty-print a result."""
    print(f"\n{'='*60}")
    print(f"  {label}")
    print(f"{'='*60}")
    print(json.dumps(data, indent=2, default=str))


def simulated_edge_node() -> httpx.MockTransport:
    """An edge node that accepts every publication."""
    published: dict[str, dict] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/info":
            return httpx.Response(200, json={"version": "demo"})
        if request.url.path == "/publish":
            body = json.loads(request.content)
            ual = f"did:dkg:{body['blockchain']}/0xdemo/{len(published) + 1}"
            published[ual] = body["content"]
            return httpx.Response(
                200,
                json={
                    "UAL": ual,
                    "blockNumber": 1000 + len(published),
                    "operation": {"mintKnowledgeCollection": {"transactionHash": f"0x{len(published):064x}"}},
                },
            )
        if request.url.path == "/get":
            content = published.get(request.url.params.get("ual", ""))
            if content is None:
                return httpx.Response(404)
            return httpx.Response(200, json={"assertion": content, "metadata": {}})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def analysis_backend():
    api_key = os.environ.get("OPENAI_API_KEY")
    if api_key:
        return create_openai_backend(
            base_url=os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            api_key=api_key,
            model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
        )

    async def canned(prompt: str) -> str:
        return f"```json\n{json.dumps(CANNED_ANALYSIS)}\n```"

    return canned


def show_progress(progress: WorkflowProgress) -> None:
    print(f"  [{progress.step_number}/{progress.total_steps}] {progress.percentage:3d}% {progress.step}: {progress.message}")


async def run() -> int:
    settings = get_config()
    store = InMemoryStore()
    ledger = HttpLedgerPublisher.from_settings(settings, transport=simulated_edge_node())

    orchestrator = WorkflowOrchestrator(settings)
    await orchestrator.initialize(
        WorkflowServices(
            analysis_provider=LLMAnalysisProvider(analysis_backend()),
            ledger_publisher=ledger,
            stake_ledger=LocalStakeLedger(store, settings=settings),
            store=store,
        )
    )

    print("Claimflow Demo")
    print("==============")
    print(f"Mode: {settings.performance_mode} {settings.effective_timeouts().describe()}\n")

    # 1. Register the submitting agent
    print("[1/5] Registering agent...")
    agent = orchestrator.agents.resolve_from_context({"agent": {"id": "demo_agent_001", "name": "Demo Agent"}})
    pp("Agent", agent.to_dict())

    # 2. Verify the claim
    print(f'\n[2/5] Verifying claim: "{CLAIM}"')
    result = await orchestrator.execute_health_claim_workflow(agent, CLAIM, progress_callback=show_progress)
    pp("Workflow result", result.to_dict())
    if not result.success:
        print("ERROR: Workflow failed.")
        return 1

    claim = await store.get_claim(result.claim_id)
    pp("Stored claim", claim.to_dict())
    pp("Published asset", await ledger.get(result.ledger_asset_id) or {})

    # 3. Other agents stake on the note
    print("\n[3/5] Peers staking on the note...")
    for peer, position in (("peer_agent_002", "support"), ("peer_agent_003", "oppose"), ("peer_agent_004", "support")):
        orchestrator.agents.register(peer)
        await store.insert_stake(
            StakeCommitment(note_id=result.note_id, staker_id=peer, amount=1.0, position=position)
        )
    consensus = await orchestrator.get_consensus_verdict(result.note_id)
    pp("Consensus", consensus.to_dict())

    # 4. Distribute rewards
    print("\n[4/5] Distributing rewards...")
    rewards = await orchestrator.execute_reward_distribution_workflow(result.note_id)
    pp("Rewards", rewards.to_dict())
    pp("Claim after consensus", (await store.get_claim(result.claim_id)).to_dict())

    # 5. Housekeeping
    print("\n[5/5] Running maintenance...")
    pp("Maintenance", (await orchestrator.execute_maintenance_workflow()).to_dict())

    print("\n" + "=" * 60)
    print("  Demo complete!")
    print("=" * 60)
    print("\nWhat happened:")
    print("  1. An agent was registered from a request context")
    print("  2. The claim was analysed, stored, published and auto-staked")
    print("  3. Peers staked until the note reached consensus")
    print("  4. Accurate participants were rewarded and trust scores moved")
    print("  5. Expired cache entries were purged")
    return 0


def main() -> int:
    configure_logging(level="WARNING", json_format=False)
    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())
