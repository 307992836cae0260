"""Test suite for application settings."""

from zoneinfo import ZoneInfo

import pytest

from clinicdesk.domain.models import PlanLimits
from clinicdesk.infrastructure.settings import Settings


class TestSettings:
    """Settings read from the environment."""

    def test_defaults(self, monkeypatch):
        for name in ("CLINIC_TIMEZONE", "CLINIC_DAILY_CAPACITY", "CLINIC_LIMIT_PATIENTS",
                     "CLINIC_LIMIT_APPOINTMENTS", "CLINIC_LIMIT_CONSULTATIONS"):
            monkeypatch.delenv(name, raising=False)

        app_settings = Settings()

        assert app_settings.timezone is None
        assert app_settings.daily_capacity == 10
        assert app_settings.plan_limits == PlanLimits(patients=50, appointments=10, consultations=100)

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("CLINIC_TIMEZONE", "America/Sao_Paulo")
        monkeypatch.setenv("CLINIC_DAILY_CAPACITY", "16")
        monkeypatch.setenv("CLINIC_LIMIT_PATIENTS", "500")
        monkeypatch.setenv("CLINIC_LOG_JSON", "TRUE")

        app_settings = Settings()

        assert app_settings.timezone == ZoneInfo("America/Sao_Paulo")
        assert app_settings.daily_capacity == 16
        assert app_settings.plan_limits.patients == 500
        assert app_settings.log_json

    def test_capacity_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("CLINIC_DAILY_CAPACITY", "0")
        with pytest.raises(ValueError):
            Settings()

    def test_store_config_is_cached(self, monkeypatch):
        monkeypatch.setenv("CLINIC_STORE_BACKEND", "duckdb")
        monkeypatch.setenv("CLINIC_DB_PATH", ":memory:")

        app_settings = Settings()

        assert app_settings.store_config is app_settings.store_config
        assert app_settings.store_config.db_path == ":memory:"
