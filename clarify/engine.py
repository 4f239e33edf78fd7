"""Core engine — ties together registry, scheduler, orchestrator, overlay, applicator."""
import asyncio
import logging
from typing import Callable, Dict, Optional, Set

from clarify.applicator import CorrectionApplicator
from clarify.errors import StaleResultDiscarded
from clarify.models import CheckRequest, CheckResult, GrammarError, ProviderConfig
from clarify.overlay import OverlayRenderer
from clarify.registry import ElementRegistry
from clarify.scheduler import QUIET_PERIOD_MS, DebounceScheduler

logger = logging.getLogger(__name__)


class GrammarEngine:
    """Annotates tracked text surfaces with grammar issues.

    All state changes happen on one asyncio loop. Provider calls are the
    only suspension points; their results are applied only if the element
    is still on the same generation and text they were computed for.
    """

    def __init__(self, orchestrator, layer,
                 config_source: Callable[[], ProviderConfig],
                 loop: Optional[asyncio.AbstractEventLoop] = None,
                 quiet_period_ms: int = QUIET_PERIOD_MS):
        self._loop = loop or asyncio.get_running_loop()
        self._orchestrator = orchestrator
        self._config_source = config_source
        self._enabled = True
        self._tasks: Set[asyncio.Task] = set()
        self.checks_run = 0

        self._registry = ElementRegistry(on_collected=self._release)
        self._scheduler = DebounceScheduler(
            self._loop, self._registry, self._dispatch, quiet_period_ms,
        )
        self._renderer = OverlayRenderer(layer, self._registry, on_accept=self.apply_correction)
        self._applicator = CorrectionApplicator(self._registry, self._renderer, self.on_edit)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> ElementRegistry:
        return self._registry

    @property
    def scheduler(self) -> DebounceScheduler:
        return self._scheduler

    @property
    def renderer(self) -> OverlayRenderer:
        return self._renderer

    @property
    def applicator(self) -> CorrectionApplicator:
        return self._applicator

    def enable(self):
        self._enabled = True
        logger.info("Grammar checking enabled")

    def disable(self):
        self._enabled = False
        self._scheduler.cancel_all()
        self._renderer.close_detail()
        self._renderer.clear_all()
        logger.info("Grammar checking disabled")

    # --- surface lifecycle ---

    def attach(self, surface):
        return self._registry.attach(surface)

    def on_focus(self, surface):
        return self.attach(surface)

    def detach(self, surface):
        element = self._registry.detach(surface)
        if element is None:
            return
        self._release(element)
        logger.debug("Stopped tracking %s", element.id)

    def _release(self, element):
        """Stop timers and drop overlays of an element that left the registry."""
        self._scheduler.cancel(element)
        self._renderer.release(element.id)

    # --- edit path ---

    def on_edit(self, element_id: str):
        """Called for every edit event of a tracked surface."""
        if not self._enabled:
            return
        element = self._registry.get(element_id)
        if element is None or element.surface is None:
            return

        # Annotations computed for older text must not stay on screen
        if element.current_errors and element.surface.get_text() != element.snapshot:
            self._renderer.clear(element_id)

        self._scheduler.schedule(element)

    def apply_correction(self, element_id: str, error: GrammarError, replacement: str) -> bool:
        return self._applicator.apply(element_id, error.offset, error.length, replacement)

    # --- counters for the surrounding UI ---

    def error_count(self, element_id: str) -> int:
        element = self._registry.get(element_id)
        return len(element.current_errors) if element is not None else 0

    def error_counts(self) -> Dict[str, int]:
        return {element.id: len(element.current_errors) for element in self._registry}

    # --- check cycle ---

    def _dispatch(self, request: CheckRequest):
        self.checks_run += 1
        task = self._loop.create_task(self._run_check(request))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Grammar check crashed", exc_info=exc)

    async def _run_check(self, request: CheckRequest):
        logger.debug("Checking %s gen %d (%d chars)",
                     request.element_id, request.generation, len(request.snapshot_text))
        result = await self._orchestrator.check(request.snapshot_text, self._config_source())

        try:
            element = self._verify_current(request)
        except StaleResultDiscarded as e:
            logger.debug("Discarding result: %s", e)
            return

        if not result.ok:
            # Leave whatever is on screen alone, the check simply did not happen
            logger.warning("Grammar check failed for %s: %s", request.element_id, result.error)
            return

        self._apply_result(element, request, result)

    def _verify_current(self, request: CheckRequest):
        if not self._enabled:
            raise StaleResultDiscarded("engine disabled")
        element = self._registry.get(request.element_id)
        if element is None or element.surface is None:
            raise StaleResultDiscarded(f"{request.element_id} detached")
        if element.generation != request.generation:
            raise StaleResultDiscarded(
                f"{element.id} moved to gen {element.generation} (result gen {request.generation})"
            )
        if element.surface.get_text() != request.snapshot_text:
            if not self._scheduler.is_pending(element):
                self._scheduler.schedule(element)
            raise StaleResultDiscarded(f"{element.id} text changed since snapshot")
        return element

    def _apply_result(self, element, request: CheckRequest, result: CheckResult):
        logger.info("%d issue(s) from %s for %s",
                    len(result.errors), result.source.value, element.id)
        element.snapshot = request.snapshot_text
        self._renderer.render(element.id, result.errors)

    async def join(self):
        """Wait for all in-flight checks to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
