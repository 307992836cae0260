"""Application Settings and Configuration.

This module provides application-wide settings that combine the store
configuration from the configuration manager with application defaults:
logging, the clinic timezone, the daily capacity used for the occupancy
rate and the plan limits shown on the dashboard.
"""

import os
from typing import Optional
from zoneinfo import ZoneInfo

from clinicdesk.domain.models import PlanLimits
from clinicdesk.domain.services import DEFAULT_DAILY_CAPACITY
from clinicdesk.infrastructure.config_manager import ConfigManager, StoreConfig

# Application metadata
APP_NAME = "ClinicDesk"
APP_VERSION = "1.0.0"

DEFAULT_PATIENT_LIMIT = 50
DEFAULT_APPOINTMENT_LIMIT = 10
DEFAULT_CONSULTATION_LIMIT = 100


class Settings:
    """Application settings loaded from configuration manager and environment.

    Environment Variables:
        - CLINIC_APP_NAME
        - CLINIC_LOG_LEVEL, CLINIC_LOG_JSON
        - CLINIC_TIMEZONE: IANA name (e.g. America/Sao_Paulo); host local if unset
        - CLINIC_DAILY_CAPACITY
        - CLINIC_LIMIT_PATIENTS, CLINIC_LIMIT_APPOINTMENTS, CLINIC_LIMIT_CONSULTATIONS
    """

    def __init__(self):
        """Initialize settings from environment."""
        self._store_config: Optional[StoreConfig] = None
        self._config_manager: Optional[ConfigManager] = None

        self.app_name = os.getenv("CLINIC_APP_NAME", APP_NAME)

        # Logging
        self.log_level = os.getenv("CLINIC_LOG_LEVEL", "INFO")
        self.log_json = os.getenv("CLINIC_LOG_JSON", "false").lower() == "true"

        self.timezone_name = os.getenv("CLINIC_TIMEZONE") or None

        self.daily_capacity = int(os.getenv("CLINIC_DAILY_CAPACITY", str(DEFAULT_DAILY_CAPACITY)))
        if self.daily_capacity <= 0:
            raise ValueError("CLINIC_DAILY_CAPACITY must be positive")

        self.plan_limits = PlanLimits(
            patients=int(os.getenv("CLINIC_LIMIT_PATIENTS", str(DEFAULT_PATIENT_LIMIT))),
            appointments=int(os.getenv("CLINIC_LIMIT_APPOINTMENTS", str(DEFAULT_APPOINTMENT_LIMIT))),
            consultations=int(os.getenv("CLINIC_LIMIT_CONSULTATIONS", str(DEFAULT_CONSULTATION_LIMIT))),
        )

    @property
    def timezone(self) -> Optional[ZoneInfo]:
        """Clinic timezone, or None for the host's local timezone."""
        if self.timezone_name is None:
            return None
        return ZoneInfo(self.timezone_name)

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            self._config_manager = ConfigManager.from_environment()
        return self._config_manager

    @property
    def store_config(self) -> StoreConfig:
        """Store configuration, loaded lazily on first access."""
        if self._store_config is None:
            self._store_config = self.config_manager.get_store_config()
        return self._store_config


# Global settings instance
settings = Settings()
