# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Claimflow Contributors

"""Logging setup for Claimflow workflow runs.

Every workflow run gets a run id (the correlation id) held in a context
variable, so lines logged from the analysis, ledger and staking calls of
one claim can be grouped. Workflow code attaches the identifiers it knows
about through ``extra``:

    logger.info("Stored claim", extra={"claim_id": claim.claim_id, "step": "claim_storage"})

Both formatters pick those fields up: JSON output nests them under
``"workflow"``, text output appends them as ``key=value`` pairs.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Identifiers a workflow may attach to a record, in output order
WORKFLOW_FIELDS = ("agent_id", "claim_id", "note_id", "stake_id", "ledger_asset_id", "step")

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "asyncio")

_correlation_id: ContextVar[str | None] = ContextVar("claimflow_correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Run id of the workflow in progress, or None outside a run."""
    return _correlation_id.get()


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Generator[str, None, None]:
    """Scope a workflow run id.

    Workflows call ``correlation_context(get_correlation_id())`` so a run
    started inside an outer scope (an orchestrator request, say) keeps the
    caller's id, and a bare run gets a fresh one.
    """
    cid = correlation_id or generate_correlation_id()
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)


def workflow_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Workflow identifiers attached to ``record`` through ``extra``."""
    fields = {}
    for name in WORKFLOW_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            fields[name] = value
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        fields = workflow_fields(record)
        if fields:
            log_data["workflow"] = fields

        if record.levelno >= logging.WARNING:
            log_data["source"] = f"{record.pathname}:{record.lineno}"

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Terminal output: ``time level logger [run] message key=value``."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(datefmt="%H:%M:%S")
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(level, '')}{level}{self.RESET}"

        parts = [self.formatTime(record, self.datefmt), level, record.name]
        correlation_id = get_correlation_id()
        if correlation_id:
            parts.append(f"[{correlation_id[:8]}]")
        parts.append(record.getMessage())
        parts.extend(f"{key}={value}" for key, value in workflow_fields(record).items())

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Install Claimflow's handlers on the root logger.

    Arguments left as None come from settings (CLAIMFLOW_LOG_LEVEL,
    CLAIMFLOW_LOG_FORMAT, CLAIMFLOW_LOG_FILE). A log format other than
    "json" or "text" means JSON unless stderr is a terminal. The log file,
    when set, always gets JSON.
    """
    from .config import get_config

    config = get_config()

    if level is None:
        level = config.log_level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_format is None:
        fmt = config.log_format.lower()
        json_format = fmt == "json" if fmt in ("json", "text") else not sys.stderr.isatty()

    if log_file is None:
        log_file = config.log_file

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(JSONFormatter() if json_format else StandardFormatter())
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
