"""Debounce scheduler — coalesces edit bursts into one check per quiet period."""
import logging
from typing import Callable

from clarify.models import CheckRequest, TrackedElement

logger = logging.getLogger(__name__)

QUIET_PERIOD_MS = 500
MIN_CHECK_LENGTH = 5


class DebounceScheduler:
    """Per-element debounce timers on an asyncio loop.

    Each element owns at most one pending timer. A new edit cancels and
    replaces it; when the quiet period elapses without further edits the
    element's generation is bumped, its text captured, and a CheckRequest
    dispatched.
    """

    def __init__(self, loop, registry, dispatch: Callable[[CheckRequest], None],
                 quiet_period_ms: int = QUIET_PERIOD_MS):
        self._loop = loop
        self._registry = registry
        self._dispatch = dispatch
        self.quiet_period_ms = quiet_period_ms

    def schedule(self, element: TrackedElement):
        """Restart the quiet period for element."""
        self.cancel(element)
        delay_sec = self.quiet_period_ms / 1000.0
        element.pending_timer = self._loop.call_later(delay_sec, self._fire, element.id)

    def cancel(self, element: TrackedElement):
        """Cancel any pending timer for element."""
        if element.pending_timer is not None:
            element.pending_timer.cancel()
            element.pending_timer = None

    def cancel_all(self):
        for element in self._registry:
            self.cancel(element)

    @staticmethod
    def is_pending(element: TrackedElement) -> bool:
        return element.pending_timer is not None

    def _fire(self, element_id: str):
        element = self._registry.get(element_id)
        if element is None:
            logger.debug("Timer fired for detached element %s", element_id)
            return
        element.pending_timer = None
        element.generation += 1

        surface = element.surface
        if surface is None:
            return
        text = surface.get_text()
        if len(text) < MIN_CHECK_LENGTH:
            logger.debug("Skipping check for %s: only %d chars", element_id, len(text))
            return

        self._dispatch(CheckRequest(
            element_id=element.id,
            snapshot_text=text,
            generation=element.generation,
        ))
