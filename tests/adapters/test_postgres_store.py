"""Tests for claimflow.adapters.postgres_store with a mocked cursor."""

from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from claimflow.adapters.postgres_store import PostgresStore
from claimflow.core.exceptions import DatabaseException, NotFoundError, ValidationException
from claimflow.workflow.enums import ClaimStatus, Verdict
from claimflow.workflow.models import ClaimRecord, StakeCommitment


@pytest.fixture
def mock_cursor():
    """Patch get_cursor in the store module with a MagicMock cursor."""
    cursor = MagicMock()
    cursor.fetchone.return_value = None
    cursor.fetchall.return_value = []

    @contextmanager
    def fake_get_cursor():
        yield cursor

    with patch("claimflow.adapters.postgres_store.get_cursor", fake_get_cursor):
        yield cursor


def _claim_row(**overrides) -> dict:
    now = datetime.now(UTC)
    row = {
        "id": "c1",
        "claim_text": "Some claim",
        "status": "published",
        "agent_id": "agent",
        "verdict": "true",
        "confidence": 0.9,
        "analysis": {"verdict": "true"},
        "analyzed_at": now,
        "created_at": now,
        "updated_at": now,
    }
    row.update(overrides)
    return row


class TestClaims:
    async def test_insert_claim(self, mock_cursor):
        claim = ClaimRecord(
            claim_text="Some claim", agent_id="agent", verdict=Verdict.MISLEADING, confidence=0.85, analysis={"a": 1}
        )

        await PostgresStore().insert_claim(claim)

        sql, params = mock_cursor.execute.call_args.args
        assert "INSERT INTO claims" in sql
        assert params[0] == claim.claim_id
        assert params[2] == "published"
        assert params[4] == "misleading"
        assert json.loads(params[6]) == {"a": 1}

    async def test_get_claim(self, mock_cursor):
        mock_cursor.fetchone.return_value = _claim_row()

        claim = await PostgresStore().get_claim("c1")

        assert claim.claim_id == "c1"
        assert claim.verdict is Verdict.TRUE

    async def test_get_missing_claim(self, mock_cursor):
        assert await PostgresStore().get_claim("missing") is None

    async def test_update_claim(self, mock_cursor):
        mock_cursor.fetchone.return_value = _claim_row(status="verified")

        claim = await PostgresStore().update_claim("c1", status=ClaimStatus.VERIFIED)

        assert claim.status is ClaimStatus.VERIFIED
        params = mock_cursor.execute.call_args.args[1]
        assert params[0] == "verified"
        assert params[-1] == "c1"

    async def test_update_missing_claim(self, mock_cursor):
        with pytest.raises(NotFoundError):
            await PostgresStore().update_claim("missing", status=ClaimStatus.VERIFIED)

    async def test_update_rejects_unknown_column(self, mock_cursor):
        with pytest.raises(ValidationException, match="claim_text"):
            await PostgresStore().update_claim("c1", claim_text="rewritten")

        mock_cursor.execute.assert_not_called()

    async def test_update_rejects_id_column(self, mock_cursor):
        with pytest.raises(ValidationException, match="claim_id"):
            await PostgresStore().update_claim("c1", claim_id="other")

        mock_cursor.execute.assert_not_called()


class TestStakes:
    async def test_insert_stake(self, mock_cursor):
        stake = StakeCommitment(note_id="n1", staker_id="a", amount=2.0, position="oppose", tx_hash="0x1")

        await PostgresStore().insert_stake(stake)

        params = mock_cursor.execute.call_args.args[1]
        assert params[0] == stake.stake_id
        assert params[4] == "oppose"

    async def test_list_stakes(self, mock_cursor):
        mock_cursor.fetchall.return_value = [
            {"id": "s1", "note_id": "n1", "staker_id": "a", "amount": 1, "position": "support"},
            {"id": "s2", "note_id": "n1", "staker_id": "b", "amount": 3, "position": "oppose"},
        ]

        stakes = await PostgresStore().list_stakes("n1")

        assert [s.stake_id for s in stakes] == ["s1", "s2"]
        assert stakes[1].amount == 3.0


class TestErrors:
    async def test_psycopg2_errors_wrapped(self, mock_cursor):
        mock_cursor.execute.side_effect = psycopg2.OperationalError("connection lost")

        with pytest.raises(DatabaseException, match="Database operation failed"):
            await PostgresStore().list_stakes("n1")

    async def test_health_check_uses_connection_check(self):
        with patch("claimflow.adapters.postgres_store.check_connection", return_value=True) as check:
            assert await PostgresStore().health_check() is True

        check.assert_called_once_with()

    async def test_health_check_failure(self, clean_env, mock_psycopg2_pool):
        mock_psycopg2_pool["cursor"].execute.side_effect = psycopg2.OperationalError("connection lost")

        assert await PostgresStore().health_check() is False


@pytest.mark.requires_postgres
class TestPostgresIntegration:
    """Round trip against a real database (skipped when unavailable)."""

    async def test_claim_round_trip(self, clean_env):
        from claimflow.core.db import close_pool, init_schema

        init_schema()
        try:
            store = PostgresStore()
            claim = await store.insert_claim(
                ClaimRecord(claim_text="Integration", agent_id="agent", verdict=Verdict.TRUE, confidence=0.5, analysis={})
            )

            fetched = await store.get_claim(claim.claim_id)

            assert fetched.claim_text == "Integration"
            assert await store.health_check() is True
        finally:
            close_pool()
