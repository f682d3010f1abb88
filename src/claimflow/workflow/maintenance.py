"""Maintenance workflow: periodic housekeeping for long-running processes."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..core.logging import correlation_context
from .cache import WorkflowCache
from .models import WorkflowResult

logger = logging.getLogger(__name__)


class MaintenanceWorkflow:
    """Purges expired analysis cache entries and reports cache statistics."""

    def __init__(self, cache: WorkflowCache, clock: Callable[[], float] = time.monotonic):
        self.cache = cache
        self._clock = clock

    async def execute(self) -> WorkflowResult:
        with correlation_context():
            started = self._clock()
            result = WorkflowResult(success=False)
            try:
                purged = self.cache.purge_expired()
                stats = self.cache.stats()
                result.details = {"purged_cache_entries": purged, "cache": stats}
                logger.info(f"Maintenance completed: purged {purged} expired entries, cache size {stats['size']}")
            except Exception as e:
                result.errors.append(str(e))
                logger.error(f"Maintenance workflow failed: {e}", exc_info=True)

            result.success = not result.errors
            result.execution_time_ms = int((self._clock() - started) * 1000)
            return result
