"""
Schemas de historia clínica: registros de consulta, diagnósticos, recetas
y estudios. Todas las altas se hacen a partir de un turno del médico.
"""

import datetime as dt
from uuid import UUID

from pydantic import Field, field_validator

from app.models.medical_record import Severity
from app.schemas.appointment import AppointmentResponse
from app.schemas.base import CamelModel
from app.schemas.user import PatientProfile


class _FromAppointment(CamelModel):
    appointment_id: UUID

    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, v):
        return v.strip() if isinstance(v, str) else v


# ── Altas ────────────────────────────────────────────
class MedicalRecordCreate(_FromAppointment):
    diagnosis: str = Field("", max_length=500)
    notes: str | None = Field(None, max_length=5000)


class DiagnosisCreate(_FromAppointment):
    condition: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    severity: Severity = Severity.MODERADO


class PrescriptionCreate(_FromAppointment):
    medication: str = Field(..., min_length=1, max_length=200)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(..., min_length=1, max_length=100)
    duration: str = Field(..., min_length=1, max_length=100)
    instructions: str | None = Field(None, max_length=1000)


class StudyCreate(_FromAppointment):
    study_type: str = Field(..., min_length=1, max_length=100)
    study_name: str = Field(..., min_length=1, max_length=200)
    result: str | None = Field(None, max_length=2000)
    observations: str | None = Field(None, max_length=2000)


class CompleteConsultationRequest(_FromAppointment):
    pass


# ── Respuestas ───────────────────────────────────────
class _ClinicalEntry(CamelModel):
    id: UUID
    patient_email: str
    patient_dni: str
    doctor_id: UUID
    date: dt.date
    created_at: dt.datetime | None = None


class MedicalRecordResponse(_ClinicalEntry):
    doctor_name: str
    appointment_id: UUID | None = None
    diagnosis: str
    notes: str | None = None


class DiagnosisResponse(_ClinicalEntry):
    medical_record_id: UUID | None = None
    doctor_name: str
    condition: str
    description: str | None = None
    severity: Severity


class PrescriptionResponse(_ClinicalEntry):
    medical_record_id: UUID | None = None
    doctor_name: str
    medication: str
    dosage: str
    frequency: str
    duration: str
    instructions: str | None = None


class StudyResponse(_ClinicalEntry):
    medical_record_id: UUID | None = None
    doctor_name: str | None = None
    study_type: str
    study_name: str
    result: str | None = None
    observations: str | None = None


class LatestDiagnosis(CamelModel):
    id: UUID
    diagnosis: str
    notes: str | None = None
    doctor_name: str
    date: dt.date


class PatientInfoResponse(CamelModel):
    """Todo lo que el médico necesita ver del paciente antes de la consulta."""
    patient: PatientProfile | None = None
    appointment: AppointmentResponse
    medical_records: list[MedicalRecordResponse]
    prescriptions: list[PrescriptionResponse]
    diagnoses: list[DiagnosisResponse]
    studies: list[StudyResponse]
