"""Dashboard Statistics Adapter.

Aggregates three exact-count queries (patients, today's appointments and
this month's consultations) into a DashboardStats value. A failed refresh
is logged and leaves the previous statistics in place; signing out clears
them.
"""

import asyncio
import logging
from typing import Optional

from clinicdesk.adapters.refreshing import RefreshingAdapter
from clinicdesk.domain.auth import AuthContext
from clinicdesk.domain.models import DashboardStats, PlanLimits
from clinicdesk.domain.ports import DataStorePort, Query
from clinicdesk.domain.services import DEFAULT_DAILY_CAPACITY, ScheduleClock, occupancy_rate

logger = logging.getLogger(__name__)


class StatsAdapter(RefreshingAdapter[DashboardStats]):
    """Dashboard statistics for the signed-in user.

    Parameters:
        store: Data store port
        auth: Authentication context
        clock: Clinic clock
        daily_capacity: Appointments per day that count as 100% occupancy
        limits: Plan limits reported with the live counts
    """

    resource = "dashboard statistics"

    def __init__(
        self,
        store: DataStorePort,
        auth: AuthContext,
        clock: Optional[ScheduleClock] = None,
        daily_capacity: int = DEFAULT_DAILY_CAPACITY,
        limits: Optional[PlanLimits] = None,
    ):
        super().__init__(store, auth, clock)
        if daily_capacity <= 0:
            raise ValueError("daily_capacity must be positive")
        self.daily_capacity = daily_capacity
        self.limits = limits or PlanLimits()
        self.stats = DashboardStats(limits=self.limits)

    def build_queries(self, user_id: str) -> tuple[Query, Query, Query]:
        """Patients, today's appointments and this month's consultations of `user_id`."""
        start, end = self.clock.today_window()
        patients = Query("patients").eq("user_id", user_id)
        appointments = (
            Query("appointments")
            .eq("user_id", user_id)
            .gte("data_agendamento", start)
            .lt("data_agendamento", end)
        )
        consultations = (
            Query("consultations")
            .eq("user_id", user_id)
            .gte("created_at", self.clock.month_start())
        )
        return patients, appointments, consultations

    async def _load(self, user_id: str) -> DashboardStats:
        patients_query, appointments_query, consultations_query = self.build_queries(user_id)
        patients, appointments, consultations = await asyncio.gather(
            self.store.count(patients_query),
            self.store.count(appointments_query),
            self.store.count(consultations_query),
        )
        appointments_today = appointments.unwrap("count")

        stats = DashboardStats(
            patients_registered=patients.unwrap("count"),
            appointments_today=appointments_today,
            consultations_this_month=consultations.unwrap("count"),
            occupancy_rate=occupancy_rate(appointments_today, self.daily_capacity),
            limits=self.limits,
        )
        logger.info(
            f"Loaded statistics: {stats.patients_registered} patients, "
            f"{stats.appointments_today} appointments today, "
            f"{stats.consultations_this_month} consultations this month"
        )
        return stats

    def _apply(self, value: DashboardStats) -> None:
        self.stats = value

    def _on_failure(self, error: Exception) -> None:
        # Previous statistics stay on display
        pass

    def _reset(self) -> None:
        self.stats = DashboardStats(limits=self.limits)
