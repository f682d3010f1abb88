# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Claimflow Contributors

"""Custom exception hierarchy for Claimflow.

Provides specific exception types for the failure categories a workflow
can hit (validation, readiness, stage timeouts, collaborator failures),
so callers and logs can tell them apart.
"""

from __future__ import annotations

from typing import Any


class ClaimflowException(Exception):  # noqa: N818
    """Base exception for all Claimflow errors.

    All Claimflow-specific exceptions should inherit from this class.
    """

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class DatabaseException(ClaimflowException):
    """Exception for database-related errors.

    Raised when:
    - Database connection fails
    - Query execution fails
    - Schema file cannot be found
    """

    pass


class ValidationException(ClaimflowException):
    """Exception for validation errors.

    Raised when:
    - A claim is empty or an agent identity is missing
    - Field values are out of range (confidence, trust score, stake amount)
    - An enum value is not recognised
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ConfigException(ClaimflowException):
    """Exception for configuration errors.

    Raised when:
    - Required settings are missing (ledger endpoint, API keys)
    - Configuration values are inconsistent
    """

    def __init__(self, message: str, missing_vars: list[str] | None = None):
        details = {}
        if missing_vars:
            details["missing_vars"] = missing_vars
        super().__init__(message, details)
        self.missing_vars = missing_vars or []


class NotFoundError(ClaimflowException):
    """Exception for resource not found errors.

    Raised when:
    - Requested claim doesn't exist
    - Requested note doesn't exist
    """

    def __init__(self, resource_type: str, resource_id: str):
        message = f"{resource_type} not found: {resource_id}"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        super().__init__(message, details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ServiceUnavailableError(ClaimflowException):
    """Raised when a dependent collaborator reports itself unhealthy.

    Carries the names of the failing collaborators so the workflow can fail
    fast before mutating any state.
    """

    def __init__(self, unhealthy: list[str]):
        message = f"Service health check failed: {', '.join(unhealthy)} unavailable"
        super().__init__(message, {"unhealthy": unhealthy})
        self.unhealthy = unhealthy


class StageTimeoutError(ClaimflowException):
    """Raised when a timeout-guarded stage does not finish in time."""

    def __init__(self, operation: str, timeout_ms: int):
        message = f"{operation} timed out after {timeout_ms}ms"
        super().__init__(message, {"operation": operation, "timeout_ms": timeout_ms})
        self.operation = operation
        self.timeout_ms = timeout_ms


class CollaboratorError(ClaimflowException):
    """Exception for failures reported by an external collaborator.

    Raised when:
    - The analysis provider returns unusable output
    - The ledger rejects a publication
    - The stake ledger refuses a stake or reward calculation
    """

    def __init__(self, message: str, collaborator: str | None = None):
        details = {}
        if collaborator:
            details["collaborator"] = collaborator
        super().__init__(message, details)
        self.collaborator = collaborator


class AnalysisParseError(CollaboratorError):
    """The analysis provider returned output that is not a valid analysis."""

    def __init__(self, message: str):
        super().__init__(message, collaborator="analysis_provider")


class LedgerPublishError(CollaboratorError):
    """The ledger publisher failed to publish or returned no asset id."""

    def __init__(self, message: str, error_type: str | None = None):
        super().__init__(message, collaborator="ledger_publisher")
        self.error_type = error_type
        if error_type:
            self.details["error_type"] = error_type


class StakeLedgerError(CollaboratorError):
    """The stake ledger rejected a stake or reward calculation."""

    def __init__(self, message: str):
        super().__init__(message, collaborator="stake_ledger")


class NotInitializedError(ClaimflowException):
    """Raised when a workflow facade is used before ``initialize()``."""

    def __init__(self, component: str):
        super().__init__(f"{component} not initialized", {"component": component})
        self.component = component
