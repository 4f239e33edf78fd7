"""Provider clients — LanguageTool (primary) and LLM (fallback) grammar checks.

Clients are blocking (``requests``); the orchestrator runs them in a worker
thread. They return raw provider responses and raise ProviderError on any
transport failure or non-success status. Payload interpretation is left to
the normalizer.
"""
import logging
from pathlib import Path

import requests

from clarify.errors import ProviderError
from clarify.models import (
    FallbackProvider, FallbackResponse, PrimaryResponse, ProviderConfig,
)

logger = logging.getLogger(__name__)

# Load prompt template
_PROMPT_PATH = Path(__file__).parent / "resources" / "grammar_prompt.md"
_PROMPT_TEMPLATE = ""
if _PROMPT_PATH.exists():
    _PROMPT_TEMPLATE = _PROMPT_PATH.read_text(encoding="utf-8")

LANGUAGETOOL_CATEGORIES = "GRAMMAR,TYPOS,STYLE,REDUNDANCY,CONFUSED_WORDS"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def build_prompt(text: str) -> str:
    return _PROMPT_TEMPLATE + f'\nText to check:\n"{text}"\n'


def _post(provider: str, url: str, timeout: float, **kwargs) -> requests.Response:
    """POST and raise ProviderError for transport errors and bad statuses."""
    try:
        resp = requests.post(url, timeout=timeout, **kwargs)
        resp.raise_for_status()
        return resp
    except requests.Timeout as e:
        raise ProviderError(provider, "request timed out") from e
    except requests.ConnectionError as e:
        raise ProviderError(provider, "connection error") from e
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else "?"
        raise ProviderError(provider, f"HTTP {status}") from e
    except requests.RequestException as e:
        raise ProviderError(provider, str(e)) from e


class LanguageToolClient:
    """Primary checker: LanguageTool's public /v2/check endpoint."""

    name = "languagetool"

    def check_text(self, text: str, config: ProviderConfig) -> PrimaryResponse:
        resp = _post(
            self.name,
            config.primary_url,
            config.timeout_sec,
            data={
                "text": text,
                "language": config.language,
                "enabledOnly": "false",
                "level": "picky",
                "enabledCategories": LANGUAGETOOL_CATEGORIES,
            },
            headers={"Accept": "application/json"},
        )
        logger.debug("LanguageTool answered %d bytes for %d chars", len(resp.text), len(text))
        return PrimaryResponse(body=resp.text, provider=self.name)


class GeminiClient:
    """Fallback checker backed by Google Gemini generateContent."""

    name = FallbackProvider.GEMINI.value

    def check_text(self, text: str, config: ProviderConfig) -> FallbackResponse:
        api_key = config.credential(FallbackProvider.GEMINI)
        if not api_key:
            raise ProviderError(self.name, "API key not configured")

        resp = _post(
            self.name,
            GEMINI_URL.format(model=config.gemini_model),
            config.timeout_sec,
            params={"key": api_key},
            json={
                "contents": [{"parts": [{"text": build_prompt(text)}]}],
                "generationConfig": {"temperature": 0.3, "maxOutputTokens": 500},
            },
        )
        return FallbackResponse(provider=self.name, text=self._extract_text(resp))

    def _extract_text(self, resp: requests.Response) -> str:
        try:
            data = resp.json()
            return data["candidates"][0]["content"]["parts"][0]["text"].strip()
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderError(self.name, f"unexpected response shape: {e!r}") from e


class OpenAIClient:
    """Fallback checker backed by OpenAI chat completions."""

    name = FallbackProvider.OPENAI.value

    def check_text(self, text: str, config: ProviderConfig) -> FallbackResponse:
        api_key = config.credential(FallbackProvider.OPENAI)
        if not api_key:
            raise ProviderError(self.name, "API key not configured")

        resp = _post(
            self.name,
            OPENAI_URL,
            config.timeout_sec,
            headers={"Authorization": f"Bearer {api_key}"},
            json={
                "model": config.openai_model,
                "messages": [
                    {"role": "system", "content": _PROMPT_TEMPLATE},
                    {"role": "user", "content": f'Check this text for grammar errors:\n\n"{text}"'},
                ],
                "temperature": 0.3,
                "max_tokens": 500,
            },
        )
        return FallbackResponse(provider=self.name, text=self._extract_text(resp))

    def _extract_text(self, resp: requests.Response) -> str:
        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
            return (content or "").strip()
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.name, f"unexpected response shape: {e!r}") from e


def default_fallbacks() -> dict:
    return {
        FallbackProvider.GEMINI: GeminiClient(),
        FallbackProvider.OPENAI: OpenAIClient(),
    }
