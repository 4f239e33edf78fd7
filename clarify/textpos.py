"""Conversions between Python string indices and UTF-16 code unit offsets.

LanguageTool (Java) and Qt both count positions in UTF-16 code units, so
any character outside the BMP (emoji, some CJK) counts as two there and
as one in a Python str.
"""


def to_utf16(text: str, index: int) -> int:
    """UTF-16 offset of the code point at text[index]."""
    return len(text[:index].encode("utf-16-le")) // 2


def from_utf16(text: str, units: int) -> int:
    """Index into text of the code point starting at UTF-16 offset units.

    Raises ValueError if units is negative, past the end of text, or falls
    inside a surrogate pair.
    """
    encoded = text.encode("utf-16-le")
    if units < 0 or units * 2 > len(encoded):
        raise ValueError(f"UTF-16 offset {units} outside text of {len(encoded) // 2} units")
    try:
        return len(encoded[:units * 2].decode("utf-16-le"))
    except UnicodeDecodeError:
        raise ValueError(f"UTF-16 offset {units} splits a surrogate pair") from None
