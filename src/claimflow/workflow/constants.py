"""Constants for claim verification workflows."""

from __future__ import annotations


class WorkflowConstants:
    """Fixed protocol constants. Tunables live in ``core.config``."""

    # Pipeline
    TOTAL_STEPS = 5
    HEARTBEAT_STEP = "processing"
    HEARTBEAT_MESSAGE = "Processing... please wait"

    # Consensus
    MIN_CONSENSUS_STAKES = 3

    # Staking
    DEFAULT_STAKE_AMOUNT = 1.0
    STAKE_REASONING_SUMMARY_CHARS = 200

    # Cache
    CACHE_KEY_PREFIX = "analysis_"
    CACHE_KEY_MAX_CHARS = 500

    # Agents
    NEUTRAL_TRUST_SCORE = 0.5
    TRUST_EMA_ALPHA = 0.1
    DEFAULT_CAPABILITIES = ("health_analysis", "community_notes", "staking", "rewards")

    # Ledger
    ASSET_VISIBILITY = "public"
    PUBLISHER_NAME = "Claimflow"


# Operation names used in timeout errors
OPERATION_AI_ANALYSIS = "AI Analysis"
OPERATION_LEDGER_PUBLISHING = "Ledger Publishing"
OPERATION_TOKEN_STAKING = "Token Staking"
