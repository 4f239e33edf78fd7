"""Canonical data shapes shared by every engine component."""
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

MAX_REPLACEMENTS = 3


class Origin(Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"


class Source(Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"
    DISABLED = "disabled"


class FallbackProvider(Enum):
    NONE = "none"
    GEMINI = "gemini"
    OPENAI = "openai"

    @classmethod
    def parse(cls, value) -> "FallbackProvider":
        """Map a stored setting to a provider, unknown values mean NONE."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.NONE


@dataclass(frozen=True)
class GrammarError:
    offset: int
    length: int
    message: str
    short_message: str
    replacements: Tuple[str, ...]
    rule_id: str
    category: str
    origin: Origin
    rule_description: str = ""

    @property
    def end(self) -> int:
        return self.offset + self.length

    def fits(self, text: str) -> bool:
        return self.offset >= 0 and self.length >= 1 and self.end <= len(text)


@dataclass(frozen=True)
class CheckRequest:
    element_id: str
    snapshot_text: str
    generation: int


@dataclass(frozen=True)
class CheckResult:
    errors: Tuple[GrammarError, ...]
    source: Source
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ProviderConfig:
    """Read-only provider settings, taken fresh for every check."""
    primary_enabled: bool = True
    fallback_provider: FallbackProvider = FallbackProvider.NONE
    fallback_unlocked: bool = False
    credentials: Mapping[str, str] = field(default_factory=dict)
    primary_url: str = "https://api.languagetool.org/v2/check"
    language: str = "en-US"
    gemini_model: str = "gemini-1.5-flash"
    openai_model: str = "gpt-4o-mini"
    timeout_sec: float = 10.0

    def credential(self, provider: FallbackProvider) -> str:
        return self.credentials.get(provider.value, "") or ""


# Provider responses. Only the normalizer looks inside these.

@dataclass(frozen=True)
class PrimaryResponse:
    body: Any  # JSON text or decoded mapping
    provider: str = "languagetool"


@dataclass(frozen=True)
class FallbackResponse:
    provider: str
    text: str


@dataclass(frozen=True)
class ErrorResponse:
    provider: str
    reason: str


class TrackedElement:
    """Engine-side record for one monitored text surface."""

    def __init__(self, element_id: str, surface, on_collected=None):
        self.id = element_id
        if on_collected is not None:
            self._surface_ref = weakref.ref(surface, lambda _ref: on_collected(element_id))
        else:
            self._surface_ref = weakref.ref(surface)
        self.generation = 0
        self.pending_timer = None
        self.current_errors: Tuple[GrammarError, ...] = ()
        self.snapshot: Optional[str] = None

    @property
    def surface(self):
        """The live surface, or None once it has been garbage collected."""
        return self._surface_ref()

    def __repr__(self):
        return (f"TrackedElement(id={self.id!r}, generation={self.generation}, "
                f"errors={len(self.current_errors)})")
