"""Claimflow Core - configuration, logging, errors and database access."""

from .config import StageTimeouts, WorkflowSettings, clear_config_cache, get_config
from .exceptions import (
    AnalysisParseError,
    ClaimflowException,
    CollaboratorError,
    ConfigException,
    DatabaseException,
    LedgerPublishError,
    NotFoundError,
    NotInitializedError,
    ServiceUnavailableError,
    StageTimeoutError,
    StakeLedgerError,
    ValidationException,
)
from .logging import (
    configure_logging,
    correlation_context,
    get_correlation_id,
)

__all__ = [
    # Config
    "StageTimeouts",
    "WorkflowSettings",
    "get_config",
    "clear_config_cache",
    # Exceptions
    "ClaimflowException",
    "DatabaseException",
    "ValidationException",
    "ConfigException",
    "NotFoundError",
    "ServiceUnavailableError",
    "StageTimeoutError",
    "CollaboratorError",
    "AnalysisParseError",
    "LedgerPublishError",
    "StakeLedgerError",
    "NotInitializedError",
    # Logging
    "configure_logging",
    "correlation_context",
    "get_correlation_id",
]
