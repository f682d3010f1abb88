"""Stage timeouts.

A guarded stage races its awaitable against a timer. On expiry the
awaitable is cancelled and a ``StageTimeoutError`` naming the operation
is raised; whatever the operation had already done on the far side of
the collaborator boundary is not undone.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from ..core.exceptions import StageTimeoutError

T = TypeVar("T")


def effective_timeout_ms(stage_timeout_ms: int, total_workflow_ms: int) -> int:
    """Cap a stage timeout by the whole-workflow budget. 0 means unbounded."""
    if stage_timeout_ms <= 0:
        return 0
    if total_workflow_ms <= 0:
        return stage_timeout_ms
    return min(stage_timeout_ms, total_workflow_ms)


async def with_timeout(awaitable: Awaitable[T], timeout_ms: int, operation: str) -> T:
    """Await ``awaitable``, raising ``StageTimeoutError`` after ``timeout_ms``.

    A timeout of 0 awaits without a limit.
    """
    if timeout_ms <= 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000.0)
    except asyncio.TimeoutError:
        raise StageTimeoutError(operation, timeout_ms) from None
