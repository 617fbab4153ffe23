"""
Schemas para User: respuesta, perfil clínico y edición de perfil.
"""

import datetime as dt
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from app.models.user import UserRole
from app.schemas.base import CamelModel

BLOOD_TYPES = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")


class UserResponse(CamelModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: UserRole
    phone: str | None = None
    dni: str | None = None
    address: str | None = None
    date_of_birth: str | None = None
    health_insurance: str | None = None
    doctor_id: UUID | None = None
    email_verified: bool
    is_active: bool
    last_login: dt.datetime | None = None
    created_at: dt.datetime | None = None


class PatientProfile(CamelModel):
    """Perfil clínico del paciente: lo ve el propio paciente y su médico."""
    first_name: str
    last_name: str
    email: str
    dni: str | None = None
    phone: str | None = None
    date_of_birth: str | None = None
    address: str | None = None
    blood_type: str | None = None
    allergies: list[str] = []
    chronic_conditions: list[str] = []
    current_medications: list[str] = []
    health_insurance: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None


class ProfileUpdate(CamelModel):
    """Datos personales editables; exige la contraseña actual."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    current_password: str = Field(..., min_length=1)


class ProfileUpdateResponse(CamelModel):
    message: str
    email_changed: bool
    user: UserResponse


class MedicalProfileUpdate(CamelModel):
    blood_type: str | None = None
    allergies: list[str] | None = None
    chronic_conditions: list[str] | None = None
    current_medications: list[str] | None = None
    health_insurance: str | None = Field(None, max_length=150)
    emergency_contact_name: str | None = Field(None, max_length=200)
    emergency_contact_phone: str | None = Field(None, max_length=30)

    @field_validator("blood_type")
    @classmethod
    def known_blood_type(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip().upper()
        if v not in BLOOD_TYPES:
            raise ValueError(f"Grupo sanguíneo inválido. Opciones: {', '.join(BLOOD_TYPES)}")
        return v
