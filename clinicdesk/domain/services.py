"""Scheduling and Formatting Services.

This module provides the small pieces of domain logic shared by the read
adapters: computing "today" and "this month" in the clinic's timezone,
building the half-open date window used by appointment queries, formatting
appointment times for display and deriving the occupancy rate.

Architecture:
    - Pure domain service with zero infrastructure dependencies
    - The clock is injectable so adapters can be tested at fixed instants
    - Window boundaries are plain ISO strings, compared by the store
"""

import math
from datetime import date, datetime, time, timezone, tzinfo
from typing import Callable, Optional, Union

from clinicdesk.domain.models import TodayAppointment


PATIENT_NOT_FOUND = "Paciente não encontrado"
PROFESSIONAL_NOT_FOUND = "Profissional não encontrado"
DEFAULT_APPOINTMENT_TYPE = "Consulta"
DEFAULT_APPOINTMENT_STATUS = "confirmado"

# Appointments the clinic attends per day; denominator of the occupancy rate
DEFAULT_DAILY_CAPACITY = 10

# Exclusive upper bound appended to the day string; 23:59:59 itself is outside the window
DAY_WINDOW_END_SUFFIX = "T23:59:59"


class ScheduleClock:
    """Clock bound to the clinic's timezone.

    Parameters:
        tz: Clinic timezone; None means the host's local timezone
        now: Callable returning the current instant (aware or naive)

    Example Usage:
        ```python
        clock = ScheduleClock(ZoneInfo("America/Sao_Paulo"))
        start, end = clock.today_window()
        # ("2024-05-01", "2024-05-01T23:59:59")
        ```
    """

    def __init__(self, tz: Optional[tzinfo] = None, now: Optional[Callable[[], datetime]] = None):
        self.tz = tz
        self._now = now or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        """Current instant as a timezone-aware datetime in the clinic timezone.

        Naive values from the injected clock are taken as clinic-local wall time.
        """
        current = self._now()
        if current.tzinfo is None:
            if self.tz is None:
                return current.astimezone()
            return current.replace(tzinfo=self.tz)
        return current.astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def today_window(self) -> tuple[str, str]:
        """Half-open window [start, end) covering today's appointments."""
        return day_window(self.today())

    def month_start(self) -> str:
        """First instant of the current calendar month as a naive ISO string."""
        first_day = self.today().replace(day=1)
        return datetime.combine(first_day, time.min).isoformat()

    def format_time(self, value: Union[str, datetime]) -> str:
        """Format a stored timestamp as local HH:MM.

        Aware timestamps are converted to the clinic timezone; naive ones are
        already clinic wall time.
        """
        moment = parse_timestamp(value)
        if moment.tzinfo is not None:
            moment = moment.astimezone(self.tz)
        return moment.strftime("%H:%M")


def day_window(day: date) -> tuple[str, str]:
    """Return the lexicographic window ["YYYY-MM-DD", "YYYY-MM-DDT23:59:59")."""
    start = day.isoformat()
    return start, start + DAY_WINDOW_END_SUFFIX


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp as returned by the store.

    Accepts the trailing "Z" designator and a space separator.

    Raises:
        ValueError: If the value is not an ISO timestamp
    """
    if isinstance(value, datetime):
        return value
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def occupancy_rate(appointments_today: int, daily_capacity: int) -> int:
    """Percentage of the daily capacity in use, rounded half up and capped at 100.

    Parameters:
        appointments_today: Appointments scheduled today
        daily_capacity: Appointments the clinic can attend per day

    Returns:
        int: Occupancy between 0 and 100
    """
    if daily_capacity <= 0:
        raise ValueError("daily_capacity must be positive")
    if not appointments_today:
        return 0
    rate = math.floor(appointments_today / daily_capacity * 100 + 0.5)
    return min(rate, 100)


def _related_name(row: dict, alias: str) -> Optional[str]:
    related = row.get(alias)
    if isinstance(related, list):
        # PostgREST returns a list for one-to-many embeds
        related = related[0] if related else None
    if not related:
        return None
    return related.get("nome") or None


def to_today_appointment(row: dict, clock: ScheduleClock) -> TodayAppointment:
    """Project a joined appointment row onto the display view.

    Parameters:
        row: Appointment row with `patient` and `professional` expansions
        clock: Clock used to localize the appointment time

    Returns:
        TodayAppointment: View with fallbacks for missing names, type and status
    """
    return TodayAppointment(
        id=str(row["id"]),
        time=clock.format_time(row["data_agendamento"]),
        patient_name=_related_name(row, "patient") or PATIENT_NOT_FOUND,
        doctor_name=_related_name(row, "professional") or PROFESSIONAL_NOT_FOUND,
        type=row.get("tipo") or DEFAULT_APPOINTMENT_TYPE,
        status=row.get("status") or DEFAULT_APPOINTMENT_STATUS,
    )
