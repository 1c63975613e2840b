from __future__ import annotations

import pytest

from rfpdesk.core.config import _build_config
from rfpdesk.core.exceptions import ConfigurationError


def test_defaults_build_a_valid_config(monkeypatch):
    for key in (
        "LLM_PROVIDER",
        "DATABASE_URL",
        "AI_MAX_ATTEMPTS",
        "AI_BACKOFF_SCHEDULE_SECONDS",
        "EMAIL_SEND_MAX_ATTEMPTS",
    ):
        monkeypatch.delenv(key, raising=False)

    config = _build_config("development")

    assert config.ai_gateway().backoff_schedule_seconds == (1.0, 30.0, 60.0, 90.0)
    assert config.ai_gateway().max_attempts == 5
    assert config.transport().send_max_attempts == 3


def test_backoff_schedule_is_read_from_env(monkeypatch):
    monkeypatch.setenv("AI_BACKOFF_SCHEDULE_SECONDS", "0.5, 2")

    assert _build_config("development").ai_gateway().backoff_schedule_seconds == (0.5, 2.0)


def test_unknown_llm_provider_is_rejected(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "openai")

    with pytest.raises(ConfigurationError, match="LLM_PROVIDER"):
        _build_config("development")


def test_unsupported_database_scheme_is_rejected(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "mysql://user@localhost/rfpdesk")

    with pytest.raises(ConfigurationError, match="DATABASE_URL"):
        _build_config("development")


def test_production_forces_debug_off(monkeypatch):
    monkeypatch.setenv("DEBUG", "true")

    assert _build_config("production").DEBUG is False
