"""Clinic Record Schema Definitions.

This module defines the canonical data models for the records the adapters
read and write: professionals, the formatted "today" appointment view and
the dashboard statistics.

Store rows use the column names of the hosted database (nome, tipo,
registro, ...). Models expose English attribute names and map them with
Pydantic aliases, so `Professional.model_validate(row)` accepts a raw row and
`to_row()` produces one.

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - Rows parsed from the store ignore unknown columns (created_at, ...)
    - Follows Hexagonal Architecture: Domain Core is isolated from Adapters
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfessionalData(BaseModel):
    """Fields of a professional supplied by the caller on creation.

    Parameters:
        name: Full name of the professional
        type: Professional category (médico, dentista, fisioterapeuta, ...)
        registration_number: Council registration (CRM, CRO, ...)
        specialty: Clinical specialty
        phone: Contact phone
        email: Contact e-mail
        start_time: Start of attendance hours (HH:MM)
        end_time: End of attendance hours (HH:MM)
        attendance_days: Weekdays the professional attends
        notes: Free-form notes
        status: Record status (ativo, inativo, ...)
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., alias="nome")
    type: str = Field(..., alias="tipo")
    registration_number: str = Field(..., alias="registro")
    specialty: str = Field(..., alias="especialidade")
    phone: str = Field(..., alias="telefone")
    email: str = Field(..., alias="email")
    start_time: Optional[str] = Field(None, alias="horario_inicio")
    end_time: Optional[str] = Field(None, alias="horario_fim")
    attendance_days: Optional[list[str]] = Field(None, alias="dias_atendimento")
    notes: Optional[str] = Field(None, alias="observacoes")
    status: Optional[str] = Field(None, alias="status")

    def to_row(self) -> dict:
        """Serialize to store column names."""
        return self.model_dump(by_alias=True)


class Professional(ProfessionalData):
    """A stored professional, owned by exactly one user account.

    Stored rows may leave any column but the name empty, so the detail
    fields are optional here even though new registrations require them.
    """

    id: str = Field(..., alias="id")
    user_id: Optional[str] = Field(None, alias="user_id")
    type: Optional[str] = Field(None, alias="tipo")
    registration_number: Optional[str] = Field(None, alias="registro")
    specialty: Optional[str] = Field(None, alias="especialidade")
    phone: Optional[str] = Field(None, alias="telefone")
    email: Optional[str] = Field(None, alias="email")


class ProfessionalUpdate(BaseModel):
    """Partial update of a professional; only explicitly set fields are sent."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, alias="nome")
    type: Optional[str] = Field(None, alias="tipo")
    registration_number: Optional[str] = Field(None, alias="registro")
    specialty: Optional[str] = Field(None, alias="especialidade")
    phone: Optional[str] = Field(None, alias="telefone")
    email: Optional[str] = Field(None, alias="email")
    start_time: Optional[str] = Field(None, alias="horario_inicio")
    end_time: Optional[str] = Field(None, alias="horario_fim")
    attendance_days: Optional[list[str]] = Field(None, alias="dias_atendimento")
    notes: Optional[str] = Field(None, alias="observacoes")
    status: Optional[str] = Field(None, alias="status")

    def to_row(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)


class TodayAppointment(BaseModel):
    """Formatted projection of one of today's appointments.

    Not persisted: recomputed from the appointments collection joined with
    patient and professional names on every refresh.
    """

    id: str
    time: str = Field(..., description="Local time formatted as HH:MM")
    patient_name: str
    doctor_name: str
    type: str
    status: str


class PlanLimits(BaseModel):
    """Fixed plan limits displayed next to the live counts."""

    patients: int = 50
    appointments: int = 10
    consultations: int = 100


class DashboardStats(BaseModel):
    """Dashboard statistics assembled from three count queries.

    Attributes:
        patients_registered: Patients owned by the user
        appointments_today: Appointments in today's window
        consultations_this_month: Consultations created since the month started
        occupancy_rate: Percentage of the daily capacity in use (0-100)
        limits: Plan limits
    """

    patients_registered: int = 0
    appointments_today: int = 0
    consultations_this_month: int = 0
    occupancy_rate: int = Field(0, ge=0, le=100)
    limits: PlanLimits = Field(default_factory=PlanLimits)
