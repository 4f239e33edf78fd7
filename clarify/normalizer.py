"""Response normalizer — turns provider payloads into canonical GrammarErrors.

Everything provider-specific (LanguageTool match layout, free-form JSON
embedded in LLM output) is handled here. ``normalize`` never raises:
malformed payloads are logged as parse failures and yield an empty tuple.
"""
import json
import logging
from typing import Any, Iterator, List, Optional, Tuple

from clarify.errors import ParseError
from clarify.models import (
    MAX_REPLACEMENTS, ErrorResponse, FallbackResponse, GrammarError, Origin,
    PrimaryResponse,
)
from clarify.textpos import from_utf16

logger = logging.getLogger(__name__)

AI_RULE_ID = "AI_GRAMMAR"
AI_CATEGORY = "Grammar (AI)"
AI_RULE_DESCRIPTION = "AI-detected grammar issue"

_REQUIRED_FALLBACK_KEYS = ("offset", "length", "message", "replacements")


def normalize(response, text: Optional[str] = None) -> Tuple[GrammarError, ...]:
    """Convert a provider response into canonical errors.

    For primary responses, text is the checked snapshot. LanguageTool spans
    are UTF-16 offsets and get mapped onto its code point indices.
    """
    try:
        if isinstance(response, PrimaryResponse):
            return tuple(_normalize_primary(response.body, text))
        if isinstance(response, FallbackResponse):
            return tuple(_normalize_fallback(response.text))
        if isinstance(response, ErrorResponse):
            return ()
        raise ParseError(f"unsupported response type {type(response).__name__}")
    except ParseError as e:
        provider = getattr(response, "provider", "unknown")
        logger.warning("Parse failure from %s: %s", provider, e)
        return ()


def _normalize_primary(body: Any, text: Optional[str] = None) -> List[GrammarError]:
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except ValueError as e:
            raise ParseError(f"invalid JSON body: {e}") from e

    if not isinstance(body, dict) or not isinstance(body.get("matches"), list):
        raise ParseError("response has no 'matches' list")

    errors = []
    for match in body["matches"]:
        error = _primary_match(match, text)
        if error is None:
            logger.debug("Skipping malformed match: %r", match)
            continue
        errors.append(error)
    return errors


def _primary_match(match: Any, text: Optional[str] = None) -> Optional[GrammarError]:
    if not isinstance(match, dict):
        return None
    offset = match.get("offset")
    length = match.get("length")
    if not _valid_span(offset, length):
        return None
    if text is not None:
        try:
            start = from_utf16(text, offset)
            end = from_utf16(text, offset + length)
        except ValueError:
            return None
        offset, length = start, end - start

    message = str(match.get("message") or "")
    rule = match.get("rule") if isinstance(match.get("rule"), dict) else {}
    category = rule.get("category") if isinstance(rule.get("category"), dict) else {}

    raw_replacements = match.get("replacements")
    if not isinstance(raw_replacements, list):
        raw_replacements = []
    replacements = []
    for r in raw_replacements:
        value = r.get("value") if isinstance(r, dict) else r
        if isinstance(value, str):
            replacements.append(value)

    return GrammarError(
        offset=offset,
        length=length,
        message=message,
        short_message=str(match.get("shortMessage") or message),
        replacements=tuple(replacements[:MAX_REPLACEMENTS]),
        rule_id=str(rule.get("id") or ""),
        category=str(category.get("name") or ""),
        origin=Origin.PRIMARY,
        rule_description=str(rule.get("description") or ""),
    )


def _normalize_fallback(text: str) -> List[GrammarError]:
    entries = extract_json_array(text or "")

    errors = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if any(entry.get(key) in (None, "") for key in _REQUIRED_FALLBACK_KEYS):
            continue
        if not _valid_span(entry["offset"], entry["length"]):
            continue

        replacements = entry["replacements"]
        if not isinstance(replacements, list):
            replacements = [replacements]
        message = str(entry["message"])

        errors.append(GrammarError(
            offset=entry["offset"],
            length=entry["length"],
            message=message,
            short_message=message,
            replacements=tuple(str(r) for r in replacements[:MAX_REPLACEMENTS]),
            rule_id=AI_RULE_ID,
            category=AI_CATEGORY,
            origin=Origin.FALLBACK,
            rule_description=AI_RULE_DESCRIPTION,
        ))
    return errors


def extract_json_array(text: str) -> list:
    """Return the first balanced ``[...]`` in text that parses as a JSON array.

    Raises ParseError when there is none.
    """
    for candidate in _balanced_brackets(text):
        try:
            value = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(value, list):
            return value
    raise ParseError("no JSON array found in model output")


def _balanced_brackets(text: str) -> Iterator[str]:
    """Yield each balanced [...] substring, in order of its opening bracket."""
    start = text.find("[")
    while start != -1:
        end = _matching_bracket(text, start)
        if end is not None:
            yield text[start:end + 1]
        start = text.find("[", start + 1)


def _matching_bracket(text: str, start: int) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        c = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
            continue
        if c == '"':
            in_string = True
        elif c == "[":
            depth += 1
        elif c == "]":
            depth -= 1
            if depth == 0:
                return i
    return None


def _valid_span(offset: Any, length: Any) -> bool:
    # bool is an int subclass, reject it explicitly
    if isinstance(offset, bool) or isinstance(length, bool):
        return False
    if not isinstance(offset, int) or not isinstance(length, int):
        return False
    return offset >= 0 and length >= 1
