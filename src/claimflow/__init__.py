# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Claimflow Contributors

"""Claimflow - autonomous claim verification workflows for AI agents.

An agent submits a factual claim and receives, without further human
intervention, a verified and permanently-recorded assessment backed by a
staked-token consensus, with rewards paid out to accurate participants.

Architecture:
  Claim
    → Analysis (LLM provider, cached by claim fingerprint)
    → Claim record (persistence store)
    → Knowledge asset (ledger publisher, never interrupted by a timeout)
    → Note record + auto-stake (settled concurrently)
    → Consensus (majority of stake commitments, minimum of three)
    → Rewards (stake ledger, recorded and fed back into agent trust)

Entry point: ``claimflow.workflow.WorkflowOrchestrator``.
"""

__version__ = "0.3.0"

from . import (
    core as core,
)
