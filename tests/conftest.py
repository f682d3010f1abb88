"""Global test fixtures for the Claimflow test suite."""

from __future__ import annotations

import asyncio
import os
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from claimflow.adapters.memory_store import InMemoryStore
from claimflow.adapters.stake_ledger import LocalStakeLedger
from claimflow.core.config import WorkflowSettings, clear_config_cache
from claimflow.workflow.models import AgentIdentity, AnalysisResult, PublishReceipt

# ============================================================================
# PostgreSQL Availability Detection
# ============================================================================


def _check_postgres_available() -> tuple[bool, str | None]:
    """Check if PostgreSQL is available for integration tests.

    Returns:
        Tuple of (is_available, error_message)
    """
    try:
        import psycopg2
    except ImportError:
        return False, "psycopg2 not installed"

    try:
        conn = psycopg2.connect(
            host=os.environ.get("CLAIMFLOW_DB_HOST", "localhost"),
            port=int(os.environ.get("CLAIMFLOW_DB_PORT", "5432")),
            database=os.environ.get("CLAIMFLOW_DB_NAME", "claimflow"),
            user=os.environ.get("CLAIMFLOW_DB_USER", "claimflow"),
            password=os.environ.get("CLAIMFLOW_DB_PASSWORD", ""),
            connect_timeout=3,
        )
        conn.close()
        return True, None
    except psycopg2.OperationalError as e:
        return False, f"PostgreSQL connection failed: {e}"


POSTGRES_AVAILABLE, POSTGRES_ERROR = _check_postgres_available()


def pytest_collection_modifyitems(config, items):
    """Skip tests that require PostgreSQL when the database is unavailable."""
    if POSTGRES_AVAILABLE:
        return

    skip_postgres = pytest.mark.skip(reason=f"PostgreSQL not available: {POSTGRES_ERROR}")
    for item in items:
        if "requires_postgres" in item.keywords:
            item.add_marker(skip_postgres)


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all CLAIMFLOW_ environment variables and reset the config singleton."""
    for key in list(os.environ.keys()):
        if key.startswith("CLAIMFLOW_"):
            monkeypatch.delenv(key, raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def make_settings(clean_env):
    """Factory for WorkflowSettings built from keyword overrides only."""

    def _make(**overrides: Any) -> WorkflowSettings:
        return WorkflowSettings(**overrides)

    return _make


@pytest.fixture
def settings(make_settings) -> WorkflowSettings:
    """Balanced-mode settings with defaults."""
    return make_settings()


# ============================================================================
# Collaborator Fakes
# ============================================================================


VITAMIN_C_CLAIM = "Vitamin C prevents the common cold"


class FakeAnalysisProvider:
    """Analysis provider returning a fixed result, with optional delay or error."""

    def __init__(self, result: AnalysisResult | None = None):
        self.result = result or AnalysisResult(
            verdict="misleading",
            confidence=0.85,
            summary="Vitamin C may slightly shorten colds but does not prevent them in the general population.",
            sources=("Cochrane Review 2013", "NIH Office of Dietary Supplements"),
        )
        self.calls: list[tuple[str, dict | None]] = []
        self.delay = 0.0
        self.error: Exception | None = None
        self.healthy = True

    async def analyze(self, claim_text: str, context: dict[str, Any] | None = None) -> AnalysisResult:
        self.calls.append((claim_text, context))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result

    async def health_check(self) -> bool:
        return self.healthy


class FakeLedgerPublisher:
    """Ledger publisher recording published assets in memory."""

    def __init__(self):
        self.published: list[tuple[dict[str, Any], str]] = []
        self.delay = 0.0
        self.error: Exception | None = None
        self.asset_id: str | None = None
        self.healthy = True

    async def publish(self, asset: dict[str, Any], visibility: str) -> PublishReceipt:
        self.published.append((asset, visibility))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        asset_id = self.asset_id if self.asset_id is not None else f"did:dkg:otp:20430/0xabc/{len(self.published)}"
        return PublishReceipt(asset_id=asset_id, tx_hash="0xfeed", block_number=42)

    async def get(self, asset_id: str) -> dict[str, Any] | None:
        for index, (asset, _) in enumerate(self.published, start=1):
            if asset_id.endswith(f"/{index}"):
                return {"asset_id": asset_id, "content": asset, "metadata": {}, "timestamp": None}
        return None

    async def health_check(self) -> bool:
        return self.healthy


@pytest.fixture
def analysis_provider() -> FakeAnalysisProvider:
    return FakeAnalysisProvider()


@pytest.fixture
def ledger_publisher() -> FakeLedgerPublisher:
    return FakeLedgerPublisher()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def stake_ledger(store, settings) -> LocalStakeLedger:
    return LocalStakeLedger(store, settings=settings)


@pytest.fixture
def agent() -> AgentIdentity:
    return AgentIdentity(
        agent_id="demo_agent_001",
        display_name="Demo Agent",
        wallet_address="0x" + "ab" * 20,
    )


@pytest.fixture
def vitamin_c_claim() -> str:
    return VITAMIN_C_CLAIM


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


# ============================================================================
# psycopg2 Connection Pool fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_db_pool():
    """Reset the connection pool singleton around each test."""
    from claimflow.core import db

    db._pool = None
    yield
    db._pool = None


@pytest.fixture
def mock_psycopg2_pool():
    """Mock the psycopg2 connection pool."""
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_pool = MagicMock()

    mock_conn.closed = False
    mock_conn.cursor.return_value = mock_cursor
    mock_cursor.__enter__ = MagicMock(return_value=mock_cursor)
    mock_cursor.__exit__ = MagicMock(return_value=False)

    mock_pool.getconn.return_value = mock_conn
    mock_pool.putconn = MagicMock()
    mock_pool.closeall = MagicMock()

    with patch("claimflow.core.db.psycopg2_pool.ThreadedConnectionPool") as mock_pool_class:
        mock_pool_class.return_value = mock_pool
        yield {
            "pool_class": mock_pool_class,
            "pool": mock_pool,
            "connection": mock_conn,
            "cursor": mock_cursor,
        }
