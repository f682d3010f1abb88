# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Claimflow Contributors

"""Core configuration - centralized config for the claimflow package.

All environment-based configuration should flow through this module.
This provides a single source of truth and consistent defaults.

Usage:
    from claimflow.core.config import get_config
    config = get_config()

    timeouts = config.effective_timeouts()
    ttl = config.cache_ttl_ms

Workflows take a settings instance in their constructor and only fall back
to ``get_config()`` when none is given, so tests can build
``WorkflowSettings(...)`` directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PerformanceModeName = Literal["balanced", "fast"]


@dataclass(frozen=True)
class StageTimeouts:
    """Resolved per-stage timeouts in milliseconds. 0 means unbounded."""

    ai_analysis: int
    ledger_publish: int
    token_stake: int
    total_workflow: int

    def describe(self) -> dict[str, str]:
        """Human-readable form for log lines."""
        return {
            name: "no timeout" if value == 0 else f"{value}ms"
            for name, value in (
                ("ai_analysis", self.ai_analysis),
                ("ledger_publish", self.ledger_publish),
                ("token_stake", self.token_stake),
                ("total_workflow", self.total_workflow),
            )
        }


# Mode defaults. Ledger publishing is never bounded by default: it is the one
# operation that must not be interrupted once submitted.
BALANCED_TIMEOUTS = StageTimeouts(
    ai_analysis=60_000,
    ledger_publish=0,
    token_stake=60_000,
    total_workflow=240_000,
)
FAST_TIMEOUTS = StageTimeouts(
    ai_analysis=30_000,
    ledger_publish=0,
    token_stake=30_000,
    total_workflow=150_000,
)


class WorkflowSettings(BaseSettings):
    """Configuration settings for Claimflow.

    Settings can be configured via environment variables with the
    CLAIMFLOW_ prefix, or passed by field name when constructing the
    settings object directly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # PERFORMANCE / TIMEOUT SETTINGS
    # ==========================================================================

    performance_mode: PerformanceModeName = Field(
        default="balanced",
        description="Performance mode: 'balanced' or 'fast' (lower timeouts, less reliable)",
        validation_alias="CLAIMFLOW_PERFORMANCE_MODE",
    )

    # Explicit overrides take precedence over the performance mode defaults
    timeout_ai_analysis_ms: int | None = Field(
        default=None,
        ge=0,
        description="Override for the AI analysis timeout (ms)",
        validation_alias="CLAIMFLOW_TIMEOUT_AI_ANALYSIS",
    )
    timeout_ledger_publish_ms: int | None = Field(
        default=None,
        ge=0,
        description="Override for the ledger publishing timeout (ms, 0 = unbounded)",
        validation_alias="CLAIMFLOW_TIMEOUT_LEDGER_PUBLISH",
    )
    timeout_token_stake_ms: int | None = Field(
        default=None,
        ge=0,
        description="Override for the token staking timeout (ms)",
        validation_alias="CLAIMFLOW_TIMEOUT_TOKEN_STAKE",
    )
    timeout_total_workflow_ms: int | None = Field(
        default=None,
        ge=0,
        description="Override for the total workflow timeout (ms)",
        validation_alias="CLAIMFLOW_TIMEOUT_TOTAL_WORKFLOW",
    )

    fast_mode_skip_staking: bool = Field(
        default=False,
        description="In fast mode, skip auto-staking and synthesize a placeholder stake id",
        validation_alias="CLAIMFLOW_FAST_MODE_SKIP_STAKING",
    )

    # ==========================================================================
    # CACHE SETTINGS
    # ==========================================================================

    cache_enabled: bool = Field(
        default=True,
        description="Reuse analyses of identical claims",
        validation_alias="CLAIMFLOW_CACHE_ENABLED",
    )
    cache_ttl_ms: int = Field(
        default=3_600_000,
        gt=0,
        description="Time-to-live of cached analyses (ms)",
        validation_alias="CLAIMFLOW_CACHE_TTL_MS",
    )

    # ==========================================================================
    # PROGRESS REPORTING SETTINGS
    # ==========================================================================

    progress_enabled: bool = Field(
        default=True,
        description="Emit heartbeat progress events while a workflow runs",
        validation_alias="CLAIMFLOW_PROGRESS_ENABLED",
    )
    heartbeat_interval_ms: int = Field(
        default=5000,
        gt=0,
        description="Interval between heartbeat progress events (ms)",
        validation_alias="CLAIMFLOW_HEARTBEAT_INTERVAL_MS",
    )

    # ==========================================================================
    # LEDGER SETTINGS
    # ==========================================================================

    ledger_endpoint: str = Field(
        default="http://localhost:8900",
        description="Knowledge-asset edge node endpoint",
        validation_alias="CLAIMFLOW_LEDGER_ENDPOINT",
    )
    ledger_blockchain: str = Field(
        default="otp:20430",
        description="Blockchain identifier passed to the edge node",
        validation_alias="CLAIMFLOW_LEDGER_BLOCKCHAIN",
    )
    ledger_epochs: int = Field(
        default=3,
        gt=0,
        description="Number of epochs a published asset is kept for",
        validation_alias="CLAIMFLOW_LEDGER_EPOCHS",
    )
    ledger_min_confirmations: int = Field(
        default=1,
        gt=0,
        description="Minimum finalization confirmations before publish returns",
        validation_alias="CLAIMFLOW_LEDGER_MIN_CONFIRMATIONS",
    )
    ledger_min_replications: int = Field(
        default=1,
        gt=0,
        description="Minimum node replications before publish returns",
        validation_alias="CLAIMFLOW_LEDGER_MIN_REPLICATIONS",
    )
    ledger_request_timeout_s: float | None = Field(
        default=None,
        description="HTTP timeout for ledger requests (seconds, unset = unbounded)",
        validation_alias="CLAIMFLOW_LEDGER_REQUEST_TIMEOUT",
    )

    # ==========================================================================
    # TOKEN SETTINGS
    # ==========================================================================

    minimum_stake: float = Field(
        default=1.0,
        gt=0,
        description="Minimum accepted stake amount",
        validation_alias="CLAIMFLOW_MINIMUM_STAKE",
    )
    reward_multiplier: float = Field(
        default=1.0,
        gt=0,
        description="Multiplier applied to the staked pool when paying rewards",
        validation_alias="CLAIMFLOW_REWARD_MULTIPLIER",
    )

    # ==========================================================================
    # DATABASE SETTINGS
    # ==========================================================================

    db_host: str = Field(
        default="localhost",
        description="Database host",
        validation_alias="CLAIMFLOW_DB_HOST",
    )
    db_port: int = Field(
        default=5432,
        description="Database port",
        validation_alias="CLAIMFLOW_DB_PORT",
    )
    db_name: str = Field(
        default="claimflow",
        description="Database name",
        validation_alias="CLAIMFLOW_DB_NAME",
    )
    db_user: str = Field(
        default="claimflow",
        description="Database user",
        validation_alias="CLAIMFLOW_DB_USER",
    )
    db_password: str = Field(
        default="",
        description="Database password",
        validation_alias="CLAIMFLOW_DB_PASSWORD",
    )
    db_pool_min: int = Field(
        default=1,
        description="Minimum pool connections",
        validation_alias="CLAIMFLOW_DB_POOL_MIN",
    )
    db_pool_max: int = Field(
        default=10,
        description="Maximum pool connections",
        validation_alias="CLAIMFLOW_DB_POOL_MAX",
    )
    db_pool_timeout: int = Field(
        default=10,
        description="Seconds to wait for a pooled connection",
        validation_alias="CLAIMFLOW_DB_POOL_TIMEOUT",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="CLAIMFLOW_LOG_LEVEL",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
        validation_alias="CLAIMFLOW_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="CLAIMFLOW_LOG_FILE",
    )

    @field_validator("performance_mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_fast_mode(self) -> bool:
        return self.performance_mode == "fast"

    @property
    def skip_staking(self) -> bool:
        """Staking is only ever skipped in fast mode."""
        return self.is_fast_mode and self.fast_mode_skip_staking

    def effective_timeouts(self) -> StageTimeouts:
        """Resolve timeouts: mode defaults first, then explicit overrides."""
        base = FAST_TIMEOUTS if self.is_fast_mode else BALANCED_TIMEOUTS

        def pick(override: int | None, default: int) -> int:
            return default if override is None else override

        return StageTimeouts(
            ai_analysis=pick(self.timeout_ai_analysis_ms, base.ai_analysis),
            ledger_publish=pick(self.timeout_ledger_publish_ms, base.ledger_publish),
            token_stake=pick(self.timeout_token_stake_ms, base.token_stake),
            total_workflow=pick(self.timeout_total_workflow_ms, base.total_workflow),
        )

    @property
    def connection_params(self) -> dict:
        """Get database connection parameters dict."""
        return {
            "host": self.db_host,
            "port": self.db_port,
            "dbname": self.db_name,
            "user": self.db_user,
            "password": self.db_password,
        }


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: WorkflowSettings | None = None


def get_config() -> WorkflowSettings:
    """Get the global configuration instance.

    Returns:
        The singleton WorkflowSettings instance.
    """
    global _config
    if _config is None:
        _config = WorkflowSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
