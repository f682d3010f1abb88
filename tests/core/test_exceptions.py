"""Tests for claimflow.core.exceptions module."""

from __future__ import annotations

import pytest

from claimflow.core.exceptions import (
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

# ============================================================================
# ClaimflowException Tests
# ============================================================================


class TestClaimflowException:
    """Tests for base ClaimflowException."""

    def test_create_with_message(self):
        exc = ClaimflowException("Something went wrong")
        assert str(exc) == "Something went wrong"
        assert exc.message == "Something went wrong"
        assert exc.details == {}

    def test_to_dict(self):
        exc = ClaimflowException("Error occurred", {"key": "value"})
        assert exc.to_dict() == {
            "error": "ClaimflowException",
            "message": "Error occurred",
            "details": {"key": "value"},
        }

    @pytest.mark.parametrize(
        "exc",
        [
            DatabaseException("db"),
            ValidationException("bad"),
            ConfigException("cfg"),
            NotFoundError("Claim", "c1"),
            ServiceUnavailableError(["database"]),
            StageTimeoutError("AI Analysis", 100),
            CollaboratorError("oops"),
            NotInitializedError("Workflow orchestrator"),
        ],
    )
    def test_hierarchy(self, exc):
        """Every error derives from ClaimflowException."""
        assert isinstance(exc, ClaimflowException)


# ============================================================================
# Specific exceptions
# ============================================================================


class TestValidationException:
    def test_field_and_value_in_details(self):
        exc = ValidationException("Confidence out of range", "confidence", 1.5)

        assert exc.field == "confidence"
        assert exc.value == 1.5
        assert exc.details == {"field": "confidence", "value": "1.5"}

    def test_no_field(self):
        assert ValidationException("Claim cannot be empty").details == {}


class TestConfigException:
    def test_missing_vars(self):
        exc = ConfigException("Missing config", ["CLAIMFLOW_LEDGER_ENDPOINT"])

        assert exc.missing_vars == ["CLAIMFLOW_LEDGER_ENDPOINT"]
        assert exc.details["missing_vars"] == ["CLAIMFLOW_LEDGER_ENDPOINT"]


class TestNotFoundError:
    def test_message(self):
        exc = NotFoundError("Note", "n-1")

        assert exc.message == "Note not found: n-1"
        assert exc.resource_type == "Note"
        assert exc.resource_id == "n-1"


class TestServiceUnavailableError:
    def test_names_unhealthy_collaborators(self):
        exc = ServiceUnavailableError(["ledger_publisher", "database"])

        assert "ledger_publisher" in exc.message
        assert "database" in exc.message
        assert exc.details["unhealthy"] == ["ledger_publisher", "database"]


class TestStageTimeoutError:
    def test_message_names_operation_and_timeout(self):
        exc = StageTimeoutError("AI Analysis", 1500)

        assert exc.message == "AI Analysis timed out after 1500ms"
        assert exc.operation == "AI Analysis"
        assert exc.timeout_ms == 1500


class TestCollaboratorErrors:
    def test_analysis_parse_error(self):
        exc = AnalysisParseError("no json")

        assert isinstance(exc, CollaboratorError)
        assert exc.collaborator == "analysis_provider"

    def test_ledger_publish_error_type(self):
        exc = LedgerPublishError("Ledger API Error", error_type="PublishError")

        assert exc.collaborator == "ledger_publisher"
        assert exc.error_type == "PublishError"
        assert exc.details["error_type"] == "PublishError"

    def test_stake_ledger_error(self):
        assert StakeLedgerError("Minimum stake is 1.0 tokens").collaborator == "stake_ledger"


class TestNotInitializedError:
    def test_message(self):
        exc = NotInitializedError("Workflow orchestrator")

        assert exc.message == "Workflow orchestrator not initialized"
