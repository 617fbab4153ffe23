"""
Schemas para Office y Doctor (datos de referencia).
"""

from uuid import UUID

from pydantic import Field

from app.schemas.base import CamelModel


class OfficeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    specialty: str = Field(..., min_length=1, max_length=100)
    capacity: int = Field(1, ge=1, le=20)
    equipment: list[str] = []


class OfficeResponse(CamelModel):
    id: UUID
    name: str
    specialty: str
    capacity: int
    equipment: list[str]


class DoctorResponse(CamelModel):
    id: UUID
    name: str
    first_name: str
    last_name: str
    specialty: str
    license_number: str
    available_slots: list[str]
