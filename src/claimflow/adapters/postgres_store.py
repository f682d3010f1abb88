"""PostgreSQL persistence store.

Blocking psycopg2 access through ``core.db.get_cursor()``; every public
method hops to a worker thread with ``asyncio.to_thread`` so workflow
coroutines never block the event loop. Tables are defined in
``schema.sql`` (see ``core.db.init_schema``).
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import psycopg2
from psycopg2 import sql as psql

from ..core.db import check_connection, get_cursor
from ..core.exceptions import DatabaseException, NotFoundError, ValidationException
from ..workflow.models import ClaimRecord, NoteRecord, RewardRecord, StakeCommitment

logger = logging.getLogger(__name__)

# Columns callers may change through update_claim / update_note
_CLAIM_UPDATABLE = {"status", "verdict", "confidence", "analysis", "analyzed_at"}
_NOTE_UPDATABLE = {"ledger_asset_id", "summary", "confidence", "verdict", "sources"}
_JSON_COLUMNS = {"analysis", "sources"}


def _db_value(column: str, value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if column in _JSON_COLUMNS:
        return json.dumps(list(value) if column == "sources" else value)
    return value


# ============================================================================
# Synchronous operations (run in worker threads)
# ============================================================================

def _insert_claim(claim: ClaimRecord) -> None:
    with get_cursor() as cur:
        cur.execute(
            """
            INSERT INTO claims (id, claim_text, status, agent_id, verdict, confidence,
                                analysis, analyzed_at, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                claim.claim_id,
                claim.claim_text,
                claim.status.value,
                claim.agent_id,
                claim.verdict.value,
                claim.confidence,
                json.dumps(claim.analysis),
                claim.analyzed_at,
                claim.created_at,
                claim.updated_at,
            ),
        )


def _get_row(table: str, row_id: str) -> dict[str, Any] | None:
    with get_cursor() as cur:
        cur.execute(
            psql.SQL("SELECT * FROM {} WHERE id = %s").format(psql.Identifier(table)),
            (row_id,),
        )
        return cur.fetchone()


def _update_row(table: str, row_id: str, allowed: set[str], fields: dict[str, Any]) -> dict[str, Any] | None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationException(f"Cannot update {table} columns: {', '.join(sorted(unknown))}")

    columns = list(fields)
    assignments = [psql.SQL("{} = %s").format(psql.Identifier(c)) for c in columns]
    assignments.append(psql.SQL("updated_at = %s"))
    values = [_db_value(c, fields[c]) for c in columns]
    values.append(datetime.now(UTC))

    with get_cursor() as cur:
        cur.execute(
            psql.SQL("UPDATE {} SET {} WHERE id = %s RETURNING *").format(
                psql.Identifier(table),
                psql.SQL(", ").join(assignments),
            ),
            (*values, row_id),
        )
        return cur.fetchone()


def _insert_note(note: NoteRecord) -> None:
    with get_cursor() as cur:
        cur.execute(
            """
            INSERT INTO notes (id, claim_id, ledger_asset_id, summary, confidence, verdict,
                               sources, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                note.note_id,
                note.claim_id,
                note.ledger_asset_id,
                note.summary,
                note.confidence,
                note.verdict.value,
                json.dumps(list(note.sources)),
                note.created_at,
                note.updated_at,
            ),
        )


def _insert_stake(stake: StakeCommitment) -> None:
    with get_cursor() as cur:
        cur.execute(
            """
            INSERT INTO stakes (id, note_id, staker_id, amount, position, reasoning, tx_hash, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                stake.stake_id,
                stake.note_id,
                stake.staker_id,
                stake.amount,
                stake.position.value,
                stake.reasoning,
                stake.tx_hash,
                stake.created_at,
            ),
        )


def _list_stakes(note_id: str) -> list[StakeCommitment]:
    with get_cursor() as cur:
        cur.execute("SELECT * FROM stakes WHERE note_id = %s ORDER BY created_at", (note_id,))
        return [StakeCommitment.from_row(row) for row in cur.fetchall()]


def _insert_reward(reward: RewardRecord) -> None:
    with get_cursor() as cur:
        cur.execute(
            """
            INSERT INTO rewards (id, agent_id, note_id, amount, accuracy_score, claimed_verdict,
                                 final_verdict, ledger_tx_id, reason, distributed_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                reward.reward_id,
                reward.agent_id,
                reward.note_id,
                reward.amount,
                reward.accuracy_score,
                reward.claimed_verdict,
                reward.final_verdict,
                reward.ledger_tx_id,
                reward.reason,
                reward.distributed_at,
            ),
        )


def _list_rewards(note_id: str | None) -> list[RewardRecord]:
    with get_cursor() as cur:
        if note_id is None:
            cur.execute("SELECT * FROM rewards ORDER BY distributed_at")
        else:
            cur.execute("SELECT * FROM rewards WHERE note_id = %s ORDER BY distributed_at", (note_id,))
        return [RewardRecord.from_row(row) for row in cur.fetchall()]


# ============================================================================
# Async store
# ============================================================================

class PostgresStore:
    """``PersistenceStore`` over the claims/notes/stakes/rewards tables."""

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except psycopg2.Error as e:
            raise DatabaseException(f"Database operation failed: {e}", {"operation": func.__name__}) from e

    async def insert_claim(self, claim: ClaimRecord) -> ClaimRecord:
        await self._run(_insert_claim, claim)
        return claim

    async def get_claim(self, claim_id: str) -> ClaimRecord | None:
        row = await self._run(_get_row, "claims", claim_id)
        return ClaimRecord.from_row(row) if row else None

    async def update_claim(self, claim_id: str, /, **fields: Any) -> ClaimRecord:
        row = await self._run(_update_row, "claims", claim_id, _CLAIM_UPDATABLE, fields)
        if row is None:
            raise NotFoundError("Claim", claim_id)
        return ClaimRecord.from_row(row)

    async def insert_note(self, note: NoteRecord) -> NoteRecord:
        await self._run(_insert_note, note)
        return note

    async def get_note(self, note_id: str) -> NoteRecord | None:
        row = await self._run(_get_row, "notes", note_id)
        return NoteRecord.from_row(row) if row else None

    async def update_note(self, note_id: str, /, **fields: Any) -> NoteRecord:
        row = await self._run(_update_row, "notes", note_id, _NOTE_UPDATABLE, fields)
        if row is None:
            raise NotFoundError("Note", note_id)
        return NoteRecord.from_row(row)

    async def insert_stake(self, stake: StakeCommitment) -> StakeCommitment:
        await self._run(_insert_stake, stake)
        return stake

    async def list_stakes(self, note_id: str) -> list[StakeCommitment]:
        return await self._run(_list_stakes, note_id)

    async def insert_reward(self, reward: RewardRecord) -> RewardRecord:
        await self._run(_insert_reward, reward)
        return reward

    async def list_rewards(self, note_id: str | None = None) -> list[RewardRecord]:
        return await self._run(_list_rewards, note_id)

    async def health_check(self) -> bool:
        return await asyncio.to_thread(check_connection)
