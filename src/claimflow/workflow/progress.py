"""Progress reporting for long-running workflow runs.

Two kinds of events reach the caller's callback:

- step reports, emitted by the workflow as each stage begins
- heartbeats, emitted by a background task every ``heartbeat_interval_ms``
  when no step report happened during the last interval, so a caller
  waiting on a slow stage still sees the run is alive

The reporter is used as an async context manager so the heartbeat task
is always cancelled, whether the run succeeds, fails or raises.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from .constants import WorkflowConstants
from .interfaces import ProgressCallback
from .models import WorkflowProgress

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Emits ``WorkflowProgress`` snapshots to an optional callback."""

    def __init__(
        self,
        callback: ProgressCallback | None,
        total_workflow_ms: int,
        heartbeat_interval_ms: int = 5000,
        total_steps: int = WorkflowConstants.TOTAL_STEPS,
        heartbeat_enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.callback = callback
        self.total_workflow_ms = total_workflow_ms
        self.heartbeat_interval_ms = heartbeat_interval_ms
        self.total_steps = total_steps
        self.heartbeat_enabled = heartbeat_enabled
        self._clock = clock
        self._started = clock()
        self.started_at = datetime.now(UTC)
        self._last: WorkflowProgress | None = None
        self._reported_since_tick = False
        self._task: asyncio.Task | None = None

    @property
    def last_progress(self) -> WorkflowProgress | None:
        """Most recent snapshot, step report or heartbeat."""
        return self._last

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def elapsed_ms(self) -> int:
        return int((self._clock() - self._started) * 1000)

    def snapshot(self, step: str, step_number: int, total_steps: int, message: str) -> WorkflowProgress:
        """Build a snapshot without emitting it."""
        elapsed = self.elapsed_ms()
        percentage = round(step_number / total_steps * 100) if total_steps > 0 else 0
        return WorkflowProgress(
            step=step,
            step_number=step_number,
            total_steps=total_steps,
            percentage=percentage,
            message=message,
            started_at=self.started_at,
            elapsed_ms=elapsed,
            estimated_remaining_ms=max(0, self.total_workflow_ms - elapsed),
        )

    def _emit(self, progress: WorkflowProgress) -> None:
        self._last = progress
        if self.callback is None:
            return
        try:
            self.callback(progress)
        except Exception as e:
            logger.warning(f"Progress callback failed at step {progress.step}: {e}")

    def report(
        self,
        step: str,
        step_number: int,
        total_steps: int | None = None,
        message: str = "",
    ) -> WorkflowProgress:
        """Emit a step report and return the snapshot."""
        progress = self.snapshot(step, step_number, total_steps or self.total_steps, message)
        self._reported_since_tick = True
        self._emit(progress)
        return progress

    def heartbeat(self) -> WorkflowProgress:
        """Emit a ``processing`` snapshot at the last reported step."""
        step_number = self._last.step_number if self._last else 0
        total_steps = self._last.total_steps if self._last else self.total_steps
        progress = self.snapshot(
            WorkflowConstants.HEARTBEAT_STEP,
            step_number,
            total_steps,
            WorkflowConstants.HEARTBEAT_MESSAGE,
        )
        self._emit(progress)
        return progress

    # ------------------------------------------------------------------
    # Heartbeat task
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Launch the heartbeat task. No-op without a callback."""
        if self.callback is None or not self.heartbeat_enabled or self.running:
            return
        self._task = asyncio.create_task(self._heartbeat_loop())

    async def stop(self) -> None:
        """Cancel the heartbeat task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _heartbeat_loop(self) -> None:
        interval = self.heartbeat_interval_ms / 1000.0
        while True:
            await asyncio.sleep(interval)
            if self._reported_since_tick:
                self._reported_since_tick = False
                continue
            self.heartbeat()

    async def __aenter__(self) -> ProgressReporter:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
