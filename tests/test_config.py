"""Tests for settings parsing."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from escrow_ledger.config import Settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.store_backend == "json"
        assert settings.store_path_list == [Path(".data/escrows.json")]
        assert settings.retry_attempts == 3
        assert settings.is_development

    def test_store_paths_are_split_and_trimmed(self) -> None:
        settings = Settings(_env_file=None, store_paths=" a.json , ,b/escrows.json ")
        assert settings.store_path_list == [Path("a.json"), Path("b/escrows.json")]

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("STORE_BACKEND", "memory")
        monkeypatch.setenv("APP_ENV", "production")
        settings = Settings(_env_file=None)
        assert settings.store_backend == "memory"
        assert not settings.is_development

    def test_unknown_backend_fails_fast(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, store_backend="postgres")

    def test_retry_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, retry_attempts=0)
