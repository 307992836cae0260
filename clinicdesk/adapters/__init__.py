"""Adapters for ClinicDesk.

Data-access adapters consumed by the user interface (professionals,
today's appointments, dashboard statistics), the notifiers they report
through, and the store backends under `clinicdesk.adapters.storage`.
"""

from clinicdesk.adapters.notifiers import CollectingNotifier, ConsoleNotifier, LoggingNotifier
from clinicdesk.adapters.professionals import ProfessionalsAdapter
from clinicdesk.adapters.stats import StatsAdapter
from clinicdesk.adapters.today_appointments import TodayAppointmentsAdapter

__all__ = [
    "ProfessionalsAdapter",
    "TodayAppointmentsAdapter",
    "StatsAdapter",
    "LoggingNotifier",
    "CollectingNotifier",
    "ConsoleNotifier",
]
