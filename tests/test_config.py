"""Tests for settings loading."""

import pytest

from lifeledger.config import AppSettings, get_settings


class TestAppSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("AGGREGATION_WINDOW_MONTHS", raising=False)
        monkeypatch.delenv("DEFAULT_CURRENCY", raising=False)
        settings = AppSettings(_env_file=None)
        assert settings.default_currency == "GBP"
        assert settings.aggregation_window_months == 6
        assert settings.due_soon_days == 7

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("AGGREGATION_WINDOW_MONTHS", "12")
        monkeypatch.setenv("DEFAULT_CURRENCY", "EUR")
        settings = AppSettings(_env_file=None)
        assert settings.aggregation_window_months == 12
        assert settings.default_currency == "EUR"

    def test_rejects_unknown_currency(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_CURRENCY", "JPY")
        with pytest.raises(ValueError):
            AppSettings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
