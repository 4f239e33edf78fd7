"""Exception taxonomy for the grammar engine."""


class ClarifyError(Exception):
    """Base class for engine errors."""


class ProviderError(ClarifyError):
    """Transport failure or non-success status from a grammar provider."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class ParseError(ClarifyError):
    """Provider payload could not be turned into canonical errors."""


class StaleResultDiscarded(ClarifyError):
    """A check result no longer matches its element and was dropped."""


class OutOfRangeSplice(ClarifyError):
    """Accepted correction no longer fits inside the live text."""

    def __init__(self, offset: int, length: int, text_length: int):
        super().__init__(
            f"span [{offset}, {offset + length}) outside text of length {text_length}"
        )
        self.offset = offset
        self.length = length
        self.text_length = text_length
