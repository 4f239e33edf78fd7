"""Registry of tracked text surfaces."""
import logging
import uuid
import weakref
from typing import Dict, Iterator, Optional

from clarify.models import TrackedElement

logger = logging.getLogger(__name__)


class ElementRegistry:
    """Maps surfaces (held weakly) to their TrackedElement records.

    Ids are assigned once, on first attachment, and stay stable for the
    surface's lifetime. Entries go away on explicit detach or when the
    surface object is garbage collected; in the latter case on_collected
    is called with the dropped element.
    """

    def __init__(self, on_collected=None):
        self._on_collected = on_collected
        self._elements: Dict[str, TrackedElement] = {}
        self._ids: "weakref.WeakKeyDictionary" = weakref.WeakKeyDictionary()

    def attach(self, surface) -> TrackedElement:
        element_id = self._ids.get(surface)
        if element_id is not None and element_id in self._elements:
            return self._elements[element_id]

        element_id = uuid.uuid4().hex
        element = TrackedElement(element_id, surface, on_collected=self._forget)
        self._elements[element_id] = element
        self._ids[surface] = element_id
        logger.debug("Tracking surface %r as %s", surface, element_id)
        return element

    def lookup(self, surface) -> Optional[TrackedElement]:
        element_id = self._ids.get(surface)
        return self._elements.get(element_id) if element_id else None

    def get(self, element_id: str) -> Optional[TrackedElement]:
        return self._elements.get(element_id)

    def detach(self, surface) -> Optional[TrackedElement]:
        element_id = self._ids.pop(surface, None)
        if element_id is None:
            return None
        return self._elements.pop(element_id, None)

    def _forget(self, element_id: str):
        element = self._elements.pop(element_id, None)
        if element is None:
            return
        logger.debug("Surface for %s was collected", element_id)
        if self._on_collected is not None:
            self._on_collected(element)

    def __iter__(self) -> Iterator[TrackedElement]:
        return iter(list(self._elements.values()))

    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, element_id) -> bool:
        return element_id in self._elements
