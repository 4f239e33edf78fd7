"""Tests for the JSON config and the provider settings snapshot."""
import json
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from clarify.config import DEFAULT_CONFIG, Config, validate_license
from clarify.models import FallbackProvider


def test_defaults_without_file(tmp_path):
    config = Config(tmp_path / "config.json")
    assert config.enabled is True
    assert config.primary_enabled is True
    assert config.fallback_provider == FallbackProvider.GEMINI
    assert config.debounce_ms == 500
    assert not config.premium


def test_stored_values_override_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"enabled": False, "debounce_ms": 300}))
    config = Config(path)
    assert config.enabled is False
    assert config.debounce_ms == 300
    assert config.get("language") == DEFAULT_CONFIG["language"]


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    assert Config(path).enabled is True


def test_setters_persist(tmp_path):
    path = tmp_path / "sub" / "config.json"
    config = Config(path)
    config.enabled = False
    config.fallback_provider = FallbackProvider.OPENAI
    reloaded = Config(path)
    assert reloaded.enabled is False
    assert reloaded.fallback_provider == FallbackProvider.OPENAI


def test_validate_license():
    assert validate_license("CLARIFY-PRO-1234")
    assert not validate_license("")
    assert not validate_license(None)
    assert not validate_license("clarify-pro-1234")
    assert not validate_license("FREE-1234")


def test_unknown_fallback_value_means_none(tmp_path):
    config = Config(tmp_path / "config.json")
    config.set("fallback_provider", "bard")
    assert config.fallback_provider == FallbackProvider.NONE
    assert FallbackProvider.parse("OpenAI") == FallbackProvider.OPENAI


def test_provider_config_snapshot(tmp_path):
    config = Config(tmp_path / "config.json")
    config.set("license_key", "CLARIFY-PRO-abc")
    config.set("gemini_key", "g-key")
    config.set("request_timeout_ms", 2500)

    snapshot = config.provider_config()
    assert snapshot.fallback_unlocked
    assert snapshot.fallback_provider == FallbackProvider.GEMINI
    assert snapshot.credential(FallbackProvider.GEMINI) == "g-key"
    assert snapshot.timeout_sec == 2.5

    # later changes do not leak into a snapshot already taken
    config.set("primary_enabled", False)
    assert snapshot.primary_enabled
    assert not config.provider_config().primary_enabled
