"""Unit tests for scheduling and formatting services."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from clinicdesk.domain.services import (
    PATIENT_NOT_FOUND,
    PROFESSIONAL_NOT_FOUND,
    ScheduleClock,
    day_window,
    occupancy_rate,
    parse_timestamp,
    to_today_appointment,
)

SAO_PAULO = ZoneInfo("America/Sao_Paulo")


class TestScheduleClock:
    """Test suite for ScheduleClock."""

    def test_today_uses_clinic_timezone(self):
        """Late evening in São Paulo is already tomorrow in UTC."""
        clock = ScheduleClock(SAO_PAULO, now=lambda: datetime(2024, 5, 16, 1, 0, tzinfo=timezone.utc))

        assert clock.today() == date(2024, 5, 15)
        assert clock.today_window() == ("2024-05-15", "2024-05-15T23:59:59")

    def test_naive_now_is_clinic_wall_time(self):
        clock = ScheduleClock(SAO_PAULO, now=lambda: datetime(2024, 5, 15, 23, 0))
        assert clock.today() == date(2024, 5, 15)

    def test_month_start(self, clock):
        assert clock.month_start() == "2024-05-01T00:00:00"

    def test_month_start_on_first_day(self):
        clock = ScheduleClock(SAO_PAULO, now=lambda: datetime(2024, 6, 1, 0, 5, tzinfo=SAO_PAULO))
        assert clock.month_start() == "2024-06-01T00:00:00"

    def test_format_time_naive(self, clock):
        assert clock.format_time("2024-05-15T09:05:00") == "09:05"

    def test_format_time_converts_aware_values(self, clock):
        """12:00 UTC is 09:00 in São Paulo (UTC-3)."""
        assert clock.format_time("2024-05-15T12:00:00+00:00") == "09:00"
        assert clock.format_time("2024-05-15T12:00:00Z") == "09:00"

    def test_format_time_accepts_datetime(self, clock):
        assert clock.format_time(datetime(2024, 5, 15, 14, 45)) == "14:45"


class TestDayWindow:
    """Test suite for the half-open day window."""

    def test_bounds(self):
        assert day_window(date(2024, 1, 9)) == ("2024-01-09", "2024-01-09T23:59:59")

    def test_lexicographic_membership(self):
        start, end = day_window(date(2024, 5, 15))

        assert start <= "2024-05-15T00:00:00" < end
        assert start <= "2024-05-15T23:59:58" < end
        assert not ("2024-05-15T23:59:59" < end)
        assert not ("2024-05-16T00:00:00" < end)
        assert not (start <= "2024-05-14T23:59:59")


class TestParseTimestamp:
    """Test suite for parse_timestamp."""

    def test_zulu_designator(self):
        assert parse_timestamp("2024-05-15T12:00:00Z") == datetime(2024, 5, 15, 12, tzinfo=timezone.utc)

    def test_fractional_seconds_and_offset(self):
        parsed = parse_timestamp("2024-05-15T12:00:00.123456+00:00")
        assert parsed.microsecond == 123456

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("ontem")


class TestOccupancyRate:
    """Test suite for occupancy_rate."""

    @pytest.mark.parametrize(
        "appointments, expected",
        [(0, 0), (1, 10), (3, 30), (10, 100), (15, 100)],
    )
    def test_default_capacity(self, appointments, expected):
        assert occupancy_rate(appointments, 10) == expected

    def test_rounds_half_up(self):
        """1/8 is 12.5% and 1/40 is 2.5%; both round up."""
        assert occupancy_rate(1, 8) == 13
        assert occupancy_rate(1, 40) == 3

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            occupancy_rate(1, 0)


class TestToTodayAppointment:
    """Test suite for the appointment projection."""

    def test_full_row(self, clock):
        row = {
            "id": "a-1",
            "data_agendamento": "2024-05-15T14:30:00",
            "tipo": "Retorno",
            "status": "pendente",
            "patient": {"nome": "João"},
            "professional": {"nome": "Dra. Ana"},
        }
        appointment = to_today_appointment(row, clock)

        assert appointment.id == "a-1"
        assert appointment.time == "14:30"
        assert appointment.patient_name == "João"
        assert appointment.doctor_name == "Dra. Ana"
        assert appointment.type == "Retorno"
        assert appointment.status == "pendente"

    def test_fallbacks(self, clock):
        row = {
            "id": "a-2",
            "data_agendamento": "2024-05-15T08:00:00",
            "tipo": None,
            "status": "",
            "patient": None,
            "professional": {"nome": None},
        }
        appointment = to_today_appointment(row, clock)

        assert appointment.patient_name == PATIENT_NOT_FOUND
        assert appointment.doctor_name == PROFESSIONAL_NOT_FOUND
        assert appointment.type == "Consulta"
        assert appointment.status == "confirmado"

    def test_list_embed(self, clock):
        row = {
            "id": "a-3",
            "data_agendamento": "2024-05-15T08:00:00",
            "patient": [{"nome": "Maria"}],
            "professional": [],
        }
        appointment = to_today_appointment(row, clock)

        assert appointment.patient_name == "Maria"
        assert appointment.doctor_name == PROFESSIONAL_NOT_FOUND
