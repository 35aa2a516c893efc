"""Tests for Settings loading and validation."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from dbeval.config import Settings, configure_logging
from dbeval.errors import ConfigurationError


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GROQ_MODEL", raising=False)
    monkeypatch.delenv("BENCHMARK_WRITE_ROWS", raising=False)

    settings = Settings(_env_file=None)

    assert settings.GROQ_MODEL == "llama-3.3-70b-versatile"
    assert settings.GROQ_BASE_URL == "https://api.groq.com/openai/v1"
    assert settings.BENCHMARK_WRITE_ROWS == 10_000
    assert settings.SCHEMA_TEMPERATURE == 0.1
    assert settings.SCHEMA_MAX_TOKENS == 4096


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BENCHMARK_WRITE_ROWS", "250")
    monkeypatch.setenv("MONGODB_DATABASE", "evaluation")

    settings = Settings(_env_file=None)

    assert settings.BENCHMARK_WRITE_ROWS == 250
    assert settings.MONGODB_DATABASE == "evaluation"


def test_env_file_is_read(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("SUPABASE_URL=https://abc.supabase.co\nUNRELATED=1\n", encoding="utf-8")

    settings = Settings(_env_file=env_file)

    assert settings.SUPABASE_URL == "https://abc.supabase.co"


def test_invalid_values_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, BENCHMARK_WRITE_ROWS=0)


def test_settings_are_frozen(settings: Settings) -> None:
    with pytest.raises(ValidationError):
        settings.BENCHMARK_WRITE_ROWS = 1


def test_require_lists_every_missing_name(settings: Settings) -> None:
    settings = settings.model_copy(update={"NEON_DATABASE_URL": "", "GROQ_API_KEY": None})

    with pytest.raises(ConfigurationError) as exc_info:
        settings.require("NEON_DATABASE_URL", "SUPABASE_URL", "GROQ_API_KEY")

    assert exc_info.value.missing == ["NEON_DATABASE_URL", "GROQ_API_KEY"]
    assert str(exc_info.value) == "Missing required configuration: NEON_DATABASE_URL, GROQ_API_KEY"


def test_require_passes_when_present(settings: Settings) -> None:
    settings.require("NEON_DATABASE_URL", "MONGODB_URI")


def test_configure_logging_quiets_client_loggers(settings: Settings) -> None:
    configure_logging(settings)

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("pymongo").level == logging.WARNING
