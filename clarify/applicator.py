"""Correction applicator — splices an accepted replacement into live text."""
import logging
from typing import Callable

from clarify.errors import OutOfRangeSplice

logger = logging.getLogger(__name__)


def splice(text: str, offset: int, length: int, replacement: str) -> str:
    """Return text with [offset, offset+length) replaced.

    Raises OutOfRangeSplice if the span is not inside text.
    """
    if offset < 0 or length < 0 or offset + length > len(text):
        raise OutOfRangeSplice(offset, length, len(text))
    return text[:offset] + replacement + text[offset + length:]


class CorrectionApplicator:
    """Writes accepted suggestions back into the surface and re-validates."""

    def __init__(self, registry, renderer, on_edit: Callable[[str], None]):
        self._registry = registry
        self._renderer = renderer
        self._on_edit = on_edit

    def apply(self, element_id: str, offset: int, length: int, replacement: str) -> bool:
        """Replace a span of the element's live text.

        The live text is re-read here, not the snapshot the error came
        from. Returns False (text untouched) if the element is gone or the
        span no longer fits.
        """
        element = self._registry.get(element_id)
        surface = element.surface if element is not None else None
        if surface is None:
            logger.debug("Apply on detached element %s ignored", element_id)
            return False

        text = surface.get_text()
        try:
            new_text = splice(text, offset, length, replacement)
        except OutOfRangeSplice as e:
            logger.warning("Correction aborted for %s: %s", element_id, e)
            self._renderer.close_detail()
            return False

        logger.info("Applying correction: %r -> %r", text[offset:offset + length], replacement)
        surface.focus()
        surface.set_text(new_text)
        surface.set_caret(offset + len(replacement))

        self._renderer.clear(element_id)
        self._on_edit(element_id)
        return True
