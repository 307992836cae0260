"""Domain layer for ClinicDesk.

This module contains the record schemas, ports and the scheduling logic
shared by the data-access adapters. Nothing here talks to a database.
"""

from .models import (
    Professional,
    ProfessionalData,
    ProfessionalUpdate,
    TodayAppointment,
    DashboardStats,
    PlanLimits,
)
from .auth import AuthContext, AuthState, AuthUser

__all__ = [
    "Professional",
    "ProfessionalData",
    "ProfessionalUpdate",
    "TodayAppointment",
    "DashboardStats",
    "PlanLimits",
    "AuthContext",
    "AuthState",
    "AuthUser",
]
