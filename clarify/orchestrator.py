"""Check orchestrator — hybrid primary-then-fallback grammar check policy."""
import asyncio
import logging
from typing import Mapping, Optional

from clarify.errors import ProviderError
from clarify.models import (
    CheckResult, ErrorResponse, FallbackProvider, ProviderConfig, Source,
)
from clarify.normalizer import normalize
from clarify.providers import LanguageToolClient, default_fallbacks

logger = logging.getLogger(__name__)

MIN_FALLBACK_LENGTH = 10  # fallback only runs for strictly longer texts


class CheckOrchestrator:
    """Decides which providers to call and in what order.

    Policy:
    1. Primary disabled -> DISABLED, no network call
    2. Primary failure -> surfaced as CheckResult.error, no fallback
    3. Primary found errors -> returned as PRIMARY, fallback skipped
    4. Primary clean + fallback unlocked + configured + text long enough
       -> fallback (best-effort, failures mean "no errors")
    """

    def __init__(self, primary=None, fallbacks: Optional[Mapping] = None):
        self.primary = primary if primary is not None else LanguageToolClient()
        self.fallbacks = dict(fallbacks) if fallbacks is not None else default_fallbacks()

    async def check(self, text: str, config: ProviderConfig) -> CheckResult:
        if not config.primary_enabled:
            return CheckResult(errors=(), source=Source.DISABLED)

        response = await self._call(self.primary, text, config)
        if isinstance(response, ErrorResponse):
            logger.warning("Primary check failed: %s", response.reason)
            return CheckResult(errors=(), source=Source.PRIMARY, error=response.reason)

        errors = self._within(text, normalize(response, text))
        if errors:
            logger.info("Primary checker found %d issue(s)", len(errors))
            return CheckResult(errors=errors, source=Source.PRIMARY)

        fallback = self._fallback_for(text, config)
        if fallback is not None:
            logger.debug("Primary clean, trying fallback %s", fallback.name)
            response = await self._call(fallback, text, config)
            if isinstance(response, ErrorResponse):
                logger.warning("Fallback check failed (ignored): %s", response.reason)
            else:
                errors = self._within(text, normalize(response))
                if errors:
                    logger.info("Fallback checker found %d issue(s)", len(errors))
                    return CheckResult(errors=errors, source=Source.FALLBACK)

        return CheckResult(errors=(), source=Source.PRIMARY)

    def _fallback_for(self, text: str, config: ProviderConfig):
        provider = config.fallback_provider
        if provider is FallbackProvider.NONE or not config.fallback_unlocked:
            return None
        if len(text) <= MIN_FALLBACK_LENGTH:
            return None
        if not config.credential(provider):
            logger.debug("Fallback %s selected but has no credential", provider.value)
            return None
        return self.fallbacks.get(provider)

    @staticmethod
    async def _call(client, text: str, config: ProviderConfig):
        """Run a blocking client off the event loop, folding failures into ErrorResponse."""
        try:
            return await asyncio.to_thread(client.check_text, text, config)
        except ProviderError as e:
            return ErrorResponse(provider=e.provider, reason=e.reason)

    @staticmethod
    def _within(text: str, errors) -> tuple:
        kept = tuple(e for e in errors if e.fits(text))
        if len(kept) != len(errors):
            logger.debug("Dropped %d error(s) outside the checked text", len(errors) - len(kept))
        return kept
