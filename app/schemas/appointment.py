"""
Schemas para Appointment: turnos médicos.
Incluye cambio de estado, cancelación, reprogramación y disponibilidad.
"""

import datetime as dt
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from app.models.appointment import ActorType, AppointmentStatus
from app.schemas.base import TIME_PATTERN, CamelModel


# ── CRUD de Turnos ───────────────────────────────────

class AppointmentCreate(CamelModel):
    patient_name: str = Field(..., min_length=1, max_length=200)
    patient_dni: str = Field(..., min_length=1, max_length=15)
    patient_email: EmailStr
    doctor_id: UUID
    doctor_name: str | None = None
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN)
    reason: str = Field(..., min_length=1, max_length=2000)
    status: AppointmentStatus | None = None

    @field_validator("status")
    @classmethod
    def initial_status(cls, v: AppointmentStatus | None) -> AppointmentStatus | None:
        if v not in (None, AppointmentStatus.PENDIENTE, AppointmentStatus.CONFIRMADA):
            raise ValueError("Una cita nueva solo puede quedar pendiente o confirmada")
        return v


class AppointmentUpdate(CamelModel):
    """Edición administrativa: cualquier subconjunto de campos salvo el estado."""
    patient_name: str | None = Field(None, min_length=1, max_length=200)
    patient_dni: str | None = Field(None, min_length=1, max_length=15)
    patient_email: EmailStr | None = None
    doctor_id: UUID | None = None
    date: dt.date | None = None
    time: str | None = Field(None, pattern=TIME_PATTERN)
    reason: str | None = Field(None, min_length=1, max_length=2000)


class AppointmentStatusChange(CamelModel):
    """Schema para cambiar el estado de un turno."""
    status: AppointmentStatus
    cancellation_reason: str | None = Field(None, max_length=500)


class AppointmentCancel(CamelModel):
    cancellation_reason: str = Field(..., max_length=500)

    @field_validator("cancellation_reason")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("El motivo de cancelación es obligatorio")
        return v.strip()


class AppointmentReschedule(CamelModel):
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN)


class AppointmentResponse(CamelModel):
    id: UUID
    patient_name: str
    patient_dni: str
    patient_email: str
    doctor_id: UUID
    doctor_name: str
    date: dt.date
    time: str
    reason: str
    status: AppointmentStatus
    confirmed_by: ActorType | None = None
    cancelled_by: ActorType | None = None
    cancellation_reason: str | None = None
    reminder_sent: bool = False
    created_at: dt.datetime | None = None


class DoctorAppointmentSlot(CamelModel):
    """Vista sin datos del paciente, para consultar ocupación de un médico."""
    id: UUID
    doctor_id: UUID
    doctor_name: str
    date: dt.date
    time: str
    status: AppointmentStatus


# ── Disponibilidad / Slots ───────────────────────────

class TimeSlot(CamelModel):
    """Un slot de 30 minutos dentro de una asignación."""
    time: str
    office_name: str
    available: bool = True


class AvailabilityResponse(CamelModel):
    """Slots de un médico en una fecha, ordenados por hora."""
    doctor_id: UUID
    date: dt.date
    slots: list[TimeSlot]
