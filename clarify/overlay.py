"""Overlay renderer — projects canonical errors onto the host's annotation layer."""
import functools
import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

from clarify.models import GrammarError
from clarify.surface import Annotation, AnnotationLayer

logger = logging.getLogger(__name__)


class OverlayRenderer:
    """Keeps each element's annotation region in sync with its current errors.

    render() is idempotent and per-element: a new result replaces the
    element's previous annotations and never touches other elements. At most
    one suggestion popup (detail) is open at a time.
    """

    def __init__(self, layer: AnnotationLayer, registry,
                 on_accept: Optional[Callable[[str, GrammarError, str], None]] = None):
        self._layer = layer
        self._registry = registry
        self.on_accept = on_accept
        self._rendered: Dict[str, Tuple[Annotation, ...]] = {}
        self._detail: Optional[Tuple[str, int]] = None  # (element_id, index)

    def render(self, element_id: str, errors: Sequence[GrammarError]):
        element = self._registry.get(element_id)
        if element is None or element.surface is None:
            return
        errors = tuple(errors)
        if not errors:
            self.clear(element_id)
            return

        surface = element.surface
        text = surface.get_text()
        annotations = tuple(Annotation.for_error(i, e, text) for i, e in enumerate(errors))
        element.current_errors = errors
        if self._rendered.get(element_id) == annotations:
            return

        self._close_detail_of(element_id)
        caret = surface.get_caret() if surface.has_focus() else None

        self._layer.show_annotations(
            element_id, surface, annotations,
            functools.partial(self.select, element_id),
        )
        self._rendered[element_id] = annotations

        # Rebuilding the region must not leave focus or caret elsewhere
        if caret is not None:
            surface.focus()
            surface.set_caret(caret)

    def clear(self, element_id: str):
        element = self._registry.get(element_id)
        if element is not None:
            element.current_errors = ()
        self._close_detail_of(element_id)
        if self._rendered.pop(element_id, None) is not None:
            self._layer.clear_annotations(element_id)

    def clear_all(self):
        for element_id in list(self._rendered):
            self.clear(element_id)

    def release(self, element_id: str):
        """Drop everything drawn for an element whose surface is gone."""
        self._close_detail_of(element_id)
        if self._rendered.pop(element_id, None) is not None:
            self._layer.clear_annotations(element_id)

    def annotations(self, element_id: str) -> Tuple[Annotation, ...]:
        return self._rendered.get(element_id, ())

    # --- detail popup ---

    @property
    def open_detail(self) -> Optional[Tuple[str, int]]:
        return self._detail

    def select(self, element_id: str, index: int):
        """Open the suggestion popup for one annotation, closing any other."""
        annotations = self._rendered.get(element_id, ())
        if not 0 <= index < len(annotations):
            return
        element = self._registry.get(element_id)
        if element is None or element.surface is None:
            return

        self.close_detail()
        annotation = annotations[index]
        self._detail = (element_id, index)
        self._layer.show_detail(
            element_id, element.surface, annotation,
            on_pick=functools.partial(self._pick, element_id, annotation.error),
            on_dismiss=functools.partial(self._dismissed, element_id, index),
        )

    def close_detail(self):
        if self._detail is None:
            return
        self._detail = None
        self._layer.hide_detail()

    def _close_detail_of(self, element_id: str):
        if self._detail is not None and self._detail[0] == element_id:
            self.close_detail()

    def _dismissed(self, element_id: str, index: int):
        if self._detail == (element_id, index):
            self._detail = None

    def _pick(self, element_id: str, error: GrammarError, replacement: str):
        self.close_detail()
        logger.debug("Suggestion picked for %s: %r", element_id, replacement)
        if self.on_accept is not None:
            self.on_accept(element_id, error, replacement)
