"""
Schemas para OfficeAssignment: asignación mensual consultorio/médico.
"""

import datetime as dt
from uuid import UUID

from pydantic import Field, field_validator

from app.schemas.base import TIME_PATTERN, CamelModel


class _ScheduleBlock(CamelModel):
    """Período + días + bloque horario, común a asignaciones y consultas."""
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2024)
    week_days: list[int] = Field(
        ..., min_length=1, description="0=Domingo, 1=Lunes ... 6=Sábado"
    )
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)

    @field_validator("week_days")
    @classmethod
    def valid_week_days(cls, v: list[int]) -> list[int]:
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("weekDays solo admite valores de 0 (Domingo) a 6 (Sábado)")
        return v

    @field_validator("end_time")
    @classmethod
    def end_after_start(cls, v: str, info) -> str:
        start = info.data.get("start_time")
        if start and v <= start:
            raise ValueError("endTime debe ser posterior a startTime")
        return v


class OfficeAssignmentCreate(_ScheduleBlock):
    office_id: UUID
    doctor_id: UUID
    # Se aceptan por compatibilidad; el servidor usa los nombres registrados
    office_name: str | None = None
    doctor_name: str | None = None


class OfficeAvailabilityCheck(_ScheduleBlock):
    office_id: UUID


class OfficeAssignmentResponse(CamelModel):
    id: UUID
    office_id: UUID
    office_name: str
    doctor_id: UUID
    doctor_name: str
    month: int
    year: int
    week_days: list[int]
    start_time: str
    end_time: str
    created_at: dt.datetime | None = None


class OfficeAvailabilityResponse(CamelModel):
    available: bool
    conflicts: list[OfficeAssignmentResponse] = []
