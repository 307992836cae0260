"""Today's Appointments Adapter.

Loads the signed-in user's appointments for the current local day, joined
with patient and professional names, and keeps them formatted for display.
Failures are logged only: the list is cleared and no notification is raised.
"""

import logging

from clinicdesk.adapters.refreshing import RefreshingAdapter
from clinicdesk.domain.models import TodayAppointment
from clinicdesk.domain.ports import Query
from clinicdesk.domain.services import to_today_appointment

logger = logging.getLogger(__name__)

TABLE = "appointments"
SCHEDULE_COLUMN = "data_agendamento"


class TodayAppointmentsAdapter(RefreshingAdapter[list[TodayAppointment]]):
    """Read-only view of today's appointments.

    Example Usage:
        ```python
        async with TodayAppointmentsAdapter(store, auth, clock) as agenda:
            for appointment in agenda.appointments:
                print(appointment.time, appointment.patient_name)
        ```
    """

    resource = "today's appointments"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.appointments: list[TodayAppointment] = []

    def build_query(self, user_id: str) -> Query:
        """Appointments of `user_id` inside today's half-open window, earliest first."""
        start, end = self.clock.today_window()
        return (
            Query(TABLE)
            .eq("user_id", user_id)
            .gte(SCHEDULE_COLUMN, start)
            .lt(SCHEDULE_COLUMN, end)
            .order(SCHEDULE_COLUMN)
            .expand("patient", "patients", "patient_id", "nome")
            .expand("professional", "professionals", "professional_id", "nome")
        )

    async def _load(self, user_id: str) -> list[TodayAppointment]:
        logger.info(f"Loading today's appointments for user {user_id}")
        rows = (await self.store.fetch(self.build_query(user_id))).unwrap("fetch")
        appointments = [to_today_appointment(row, self.clock) for row in rows]
        logger.info(f"Loaded {len(appointments)} appointments for today")
        return appointments

    def _apply(self, value: list[TodayAppointment]) -> None:
        self.appointments = value

    def _on_failure(self, error: Exception) -> None:
        self.appointments = []

    def _reset(self) -> None:
        self.appointments = []
