"""Tests for core config module."""

import pytest
from pydantic import ValidationError

from apps.api.core.config import Settings
from packages.statement_engine.models import BankFormat


@pytest.fixture(autouse=True)
def supabase_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "test-anon-key")


class TestSettings:
    """Test Pydantic Settings loads env vars correctly."""

    def test_settings_loads_supabase_url(self):
        settings = Settings()
        assert settings.SUPABASE_URL == "https://test.supabase.co"

    def test_settings_loads_allowed_origins(self, monkeypatch):
        """ALLOWED_ORIGINS is parsed as a comma-separated list."""
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000, https://recon.example.com")

        settings = Settings()
        assert settings.allowed_origins == [
            "http://localhost:3000",
            "https://recon.example.com",
        ]

    def test_settings_defaults(self):
        settings = Settings()
        assert settings.LOG_LEVEL == "INFO"
        assert settings.ENVIRONMENT == "development"
        assert settings.MAPPINGS_CACHE_TTL_HOURS == 24
        assert settings.DEDUP_CHUNK_SIZE == 100
        assert settings.WRITE_CHUNK_SIZE == 100
        assert settings.CRDB_DATE_SEPARATOR == "-"
        assert settings.PERSIST_FAILED_LINES is False
        assert settings.CUSTOMER_SHEET_URL == ""

    def test_dedup_keys_from_env(self, monkeypatch):
        monkeypatch.setenv("NMB_DEDUP_KEY", "reference_id")

        settings = Settings()
        assert settings.dedup_keys == {
            BankFormat.NMB: "reference_id",
            BankFormat.CRDB: "reference_id",
        }

    def test_boolean_flag_from_env(self, monkeypatch):
        monkeypatch.setenv("PERSIST_FAILED_LINES", "true")
        assert Settings().PERSIST_FAILED_LINES is True

    def test_rejects_unknown_date_separator(self, monkeypatch):
        monkeypatch.setenv("CRDB_DATE_SEPARATOR", ".")
        with pytest.raises(ValidationError):
            Settings()

    def test_rejects_zero_chunk_size(self, monkeypatch):
        monkeypatch.setenv("DEDUP_CHUNK_SIZE", "0")
        with pytest.raises(ValidationError):
            Settings()
