"""Configuration management — JSON-based, stored in ~/.config/clarify/."""
import json
from pathlib import Path

from clarify.models import FallbackProvider, ProviderConfig

DEFAULT_CONFIG = {
    "enabled": True,
    "primary_enabled": True,
    "primary_url": "https://api.languagetool.org/v2/check",
    "language": "en-US",
    "fallback_provider": "gemini",  # "gemini", "openai" or "none"
    "gemini_key": "",
    "gemini_model": "gemini-1.5-flash",
    "openai_key": "",
    "openai_model": "gpt-4o-mini",
    "license_key": "",
    "request_timeout_ms": 10000,
    "debounce_ms": 500,
    "debug_logging": False,
}

CONFIG_DIR = Path.home() / ".config" / "clarify"
CONFIG_FILE = CONFIG_DIR / "config.json"

LICENSE_PREFIX = "CLARIFY-PRO-"


def validate_license(license_key) -> bool:
    """Premium keys unlock the AI fallback checker."""
    return bool(license_key) and str(license_key).startswith(LICENSE_PREFIX)


class Config:
    def __init__(self, path: Path = CONFIG_FILE):
        self._path = Path(path)
        self._data = dict(DEFAULT_CONFIG)
        self.load()

    def load(self):
        if self._path.exists():
            try:
                with open(self._path, "r") as f:
                    stored = json.load(f)
                if isinstance(stored, dict):
                    self._data.update(stored)
            except (json.JSONDecodeError, IOError):
                pass

    def save(self):
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w") as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)

    def get(self, key, default=None):
        return self._data.get(key, default)

    def set(self, key, value):
        self._data[key] = value
        self.save()

    @property
    def enabled(self):
        return self._data["enabled"]

    @enabled.setter
    def enabled(self, val):
        self._data["enabled"] = bool(val)
        self.save()

    @property
    def primary_enabled(self):
        return self._data["primary_enabled"]

    @property
    def fallback_provider(self) -> FallbackProvider:
        return FallbackProvider.parse(self._data.get("fallback_provider", "none"))

    @fallback_provider.setter
    def fallback_provider(self, val: FallbackProvider):
        self._data["fallback_provider"] = FallbackProvider(val).value
        self.save()

    @property
    def premium(self) -> bool:
        return validate_license(self._data.get("license_key"))

    @property
    def request_timeout_ms(self):
        return self._data.get("request_timeout_ms", 10000)

    @property
    def debounce_ms(self):
        return self._data.get("debounce_ms", 500)

    @property
    def debug_logging(self):
        return self._data["debug_logging"]

    def provider_config(self) -> ProviderConfig:
        """Snapshot of the provider settings for one check."""
        return ProviderConfig(
            primary_enabled=bool(self._data.get("primary_enabled", True)),
            fallback_provider=self.fallback_provider,
            fallback_unlocked=self.premium,
            credentials={
                FallbackProvider.GEMINI.value: self._data.get("gemini_key", ""),
                FallbackProvider.OPENAI.value: self._data.get("openai_key", ""),
            },
            primary_url=self._data.get("primary_url", DEFAULT_CONFIG["primary_url"]),
            language=self._data.get("language", "en-US"),
            gemini_model=self._data.get("gemini_model", DEFAULT_CONFIG["gemini_model"]),
            openai_model=self._data.get("openai_model", DEFAULT_CONFIG["openai_model"]),
            timeout_sec=self.request_timeout_ms / 1000.0,
        )
