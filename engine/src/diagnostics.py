"""
Rate-limited diagnostics for unavailable or misconfigured entities.

An entity that cannot be resolved to a number contributes 0 to its role and
is reported here instead of aborting the invocation. Because the engine runs
on every upstream update, the same missing entity would otherwise log on
every tick; each entity is therefore logged at most once per interval.

CHANGELOG:
- 2026-10-13: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class DiagnosticLimiter:
    """Logs one warning per entity per ``interval_s`` seconds.

    Args:
        interval_s: Minimum seconds between two warnings for the same entity.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        interval_s: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval_s = interval_s
        self._clock = clock
        self._last_logged: dict[str, float] = {}

    def report_unavailable(self, entity_id: str | None) -> bool:
        """Report an entity that could not be read.

        Returns:
            True if a warning was emitted, False if it was suppressed.
        """
        key = entity_id or "Unknown"
        now = self._clock()
        last = self._last_logged.get(key)
        if last is not None and now - last < self.interval_s:
            return False
        self._last_logged[key] = now
        logger.warning('Entity "%s" is not available or misconfigured', key)
        return True

    def reset(self) -> None:
        """Forget when each entity was last reported."""
        self._last_logged.clear()
