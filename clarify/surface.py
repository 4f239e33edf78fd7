"""Collaborator interfaces the engine consumes from its host UI."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Sequence

from clarify.models import GrammarError, Origin

FIX_LABEL = "Fix"


class TextSurface(ABC):
    """A text-bearing widget: readable, writable, focusable."""

    @abstractmethod
    def get_text(self) -> str: ...

    @abstractmethod
    def set_text(self, text: str): ...

    @abstractmethod
    def get_caret(self) -> int: ...

    @abstractmethod
    def set_caret(self, position: int): ...

    @abstractmethod
    def has_focus(self) -> bool: ...

    @abstractmethod
    def focus(self): ...


@dataclass(frozen=True)
class Annotation:
    """What the layer draws for one GrammarError."""
    index: int
    error: GrammarError
    span_text: str
    label: str

    @property
    def style(self) -> str:
        return "fallback" if self.error.origin is Origin.FALLBACK else "primary"

    @classmethod
    def for_error(cls, index: int, error: GrammarError, text: str) -> "Annotation":
        label = error.replacements[0] if error.replacements else FIX_LABEL
        return cls(index=index, error=error,
                   span_text=text[error.offset:error.end], label=label)


class AnnotationLayer(ABC):
    """Host-side drawing of annotations and the suggestion popup."""

    @abstractmethod
    def show_annotations(self, element_id: str, surface: TextSurface,
                         annotations: Sequence[Annotation],
                         on_select: Callable[[int], None]):
        """Replace element_id's annotation region with annotations."""

    @abstractmethod
    def clear_annotations(self, element_id: str):
        """Remove element_id's annotation region."""

    @abstractmethod
    def show_detail(self, element_id: str, surface: TextSurface, annotation: Annotation,
                    on_pick: Callable[[str], None], on_dismiss: Callable[[], None]):
        """Open the suggestion popup; call on_dismiss if the user closes it elsewhere."""

    @abstractmethod
    def hide_detail(self):
        """Close the suggestion popup if open."""
