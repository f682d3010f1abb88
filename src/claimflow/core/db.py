# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Claimflow Contributors

"""Database connection management for Claimflow.

Config via CLAIMFLOW_DB_* environment variables (see ``core.config``).
Everything here is blocking psycopg2; async callers go through
``asyncio.to_thread``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from psycopg2 import pool as psycopg2_pool
from psycopg2.extras import RealDictCursor
from psycopg2.pool import PoolError

from .exceptions import DatabaseException

logger = logging.getLogger(__name__)

# Connection pool (lazy init, thread-safe)
_pool: psycopg2_pool.ThreadedConnectionPool | None = None
_pool_lock = threading.Lock()


def _get_pool() -> psycopg2_pool.ThreadedConnectionPool:
    """Get or create the connection pool."""
    from .config import get_config

    global _pool
    if _pool is None:
        with _pool_lock:
            if _pool is None:
                config = get_config()
                try:
                    _pool = psycopg2_pool.ThreadedConnectionPool(
                        minconn=config.db_pool_min,
                        maxconn=config.db_pool_max,
                        connect_timeout=config.db_pool_timeout,
                        **config.connection_params,
                    )
                except psycopg2.OperationalError as e:
                    raise DatabaseException(
                        f"Failed to connect to database: {e}",
                        {"host": config.db_host, "dbname": config.db_name},
                    ) from e
    return _pool


def _get_healthy_connection(pool: psycopg2_pool.ThreadedConnectionPool) -> Any:
    """Get a connection from the pool, discarding closed ones."""
    max_attempts = 3
    for _ in range(max_attempts):
        conn = pool.getconn()
        if not conn.closed:
            return conn
        pool.putconn(conn, close=True)
    raise PoolError("Failed to get healthy connection after multiple attempts")


@contextmanager
def get_cursor() -> Generator[Any, None, None]:
    """Get a database cursor with auto-commit on success, rollback on error.

    Usage:
        with get_cursor() as cur:
            cur.execute("SELECT * FROM claims WHERE id = %s", (claim_id,))
            row = cur.fetchone()
    """
    pool = _get_pool()
    conn = _get_healthy_connection(pool)
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)


@contextmanager
def get_connection() -> Generator[Any, None, None]:
    """Get a raw connection for connection-level control (schema setup)."""
    pool = _get_pool()
    conn = _get_healthy_connection(pool)
    try:
        yield conn
    finally:
        pool.putconn(conn)


def close_pool() -> None:
    """Close the connection pool."""
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None


def init_schema(schema_path: str | None = None) -> None:
    """Initialize database schema from schema.sql.

    Args:
        schema_path: Path to schema.sql file (defaults to the packaged one)
    """
    path = Path(schema_path) if schema_path else Path(__file__).parent.parent / "schema.sql"
    if not path.exists():
        raise DatabaseException(f"schema.sql not found: {path}")

    schema_sql = path.read_text()

    with get_connection() as conn:
        conn.autocommit = True
        with conn.cursor() as cur:
            cur.execute(schema_sql)
    logger.info(f"Initialized schema from {path}")


def check_connection() -> bool:
    """Check if database connection is working."""
    try:
        with get_cursor() as cur:
            cur.execute("SELECT 1")
        return True
    except (psycopg2.Error, PoolError, DatabaseException) as e:
        logger.warning(f"Database connection check failed: {e}")
        return False
