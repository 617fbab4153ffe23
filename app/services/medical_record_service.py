"""
Servicio de historia clínica: registros de consulta, diagnósticos, recetas
y estudios. INSERT-only.

Toda alta parte de un turno: el médico solo escribe sobre pacientes de su
propia agenda, y los datos del paciente se copian del turno.
"""

import datetime as dt
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenException
from app.models.appointment import Appointment
from app.models.medical_record import (
    Diagnosis,
    MedicalRecord,
    MedicalStudy,
    Prescription,
)
from app.models.user import User, UserRole
from app.schemas.appointment import AppointmentResponse
from app.schemas.medical_record import (
    DiagnosisCreate,
    DiagnosisResponse,
    LatestDiagnosis,
    MedicalRecordCreate,
    MedicalRecordResponse,
    PatientInfoResponse,
    PrescriptionCreate,
    PrescriptionResponse,
    StudyCreate,
    StudyResponse,
)
from app.schemas.user import PatientProfile
from app.services import appointment_service
from app.services.notification_service import notify_prescription

logger = logging.getLogger(__name__)


# ── Helpers ──────────────────────────────────────────

async def get_own_appointment(
    db: AsyncSession,
    doctor_user: User,
    appointment_id: UUID,
    action: str = "ver este paciente",
) -> Appointment:
    """Turno del médico autenticado; 403 si pertenece a otro médico."""
    appointment = await appointment_service.get_appointment(db, appointment_id)
    if appointment.doctor_id != doctor_user.doctor_id:
        raise ForbiddenException(f"No tienes permiso para {action}")
    return appointment


def _from_appointment(appointment: Appointment) -> dict:
    return {
        "patient_email": appointment.patient_email,
        "patient_dni": appointment.patient_dni,
        "doctor_id": appointment.doctor_id,
        "date": dt.date.today(),
    }


async def _by_email(db: AsyncSession, model, email: str) -> list:
    """Registros de un paciente, del más reciente al más antiguo."""
    result = await db.execute(
        select(model)
        .where(model.patient_email == email)
        .order_by(model.date.desc(), model.created_at.desc())
    )
    return list(result.scalars().all())


# ── Altas ────────────────────────────────────────────

async def create_medical_record(
    db: AsyncSession, user: User, data: MedicalRecordCreate
) -> MedicalRecord:
    appointment = await get_own_appointment(
        db, user, data.appointment_id, "modificar el historial de este paciente"
    )
    record = MedicalRecord(
        **_from_appointment(appointment),
        doctor_name=appointment.doctor_name,
        appointment_id=appointment.id,
        diagnosis=data.diagnosis,
        notes=data.notes,
    )
    db.add(record)
    await db.flush()
    return record


async def create_diagnosis(
    db: AsyncSession, user: User, data: DiagnosisCreate
) -> Diagnosis:
    appointment = await get_own_appointment(
        db, user, data.appointment_id, "crear diagnósticos para este paciente"
    )
    diagnosis = Diagnosis(
        **_from_appointment(appointment),
        doctor_name=appointment.doctor_name,
        condition=data.condition,
        description=data.description,
        severity=data.severity,
    )
    db.add(diagnosis)
    await db.flush()
    return diagnosis


async def create_prescription(
    db: AsyncSession, user: User, data: PrescriptionCreate
) -> Prescription:
    """Crea la receta y avisa al paciente por email."""
    appointment = await get_own_appointment(
        db, user, data.appointment_id, "crear recetas para este paciente"
    )
    prescription = Prescription(
        **_from_appointment(appointment),
        doctor_name=appointment.doctor_name,
        medication=data.medication,
        dosage=data.dosage,
        frequency=data.frequency,
        duration=data.duration,
        instructions=data.instructions,
    )
    db.add(prescription)
    await db.flush()

    notify_prescription(db, prescription, appointment.patient_name)
    return prescription


async def create_study(
    db: AsyncSession, user: User, data: StudyCreate
) -> MedicalStudy:
    appointment = await get_own_appointment(
        db, user, data.appointment_id, "crear estudios para este paciente"
    )
    study = MedicalStudy(
        **_from_appointment(appointment),
        doctor_name=appointment.doctor_name,
        study_type=data.study_type,
        study_name=data.study_name,
        result=data.result,
        observations=data.observations,
    )
    db.add(study)
    await db.flush()
    return study


async def complete_consultation(
    db: AsyncSession, user: User, appointment_id: UUID
) -> Appointment:
    """Cierra la consulta: el turno pasa a 'completada' según la state machine."""
    appointment = await get_own_appointment(
        db, user, appointment_id, "completar esta cita"
    )
    return await appointment_service.complete_appointment(db, appointment)


# ── Consultas del paciente ───────────────────────────

async def list_records(db: AsyncSession, email: str) -> list[MedicalRecord]:
    return await _by_email(db, MedicalRecord, email)


async def list_diagnoses(db: AsyncSession, email: str) -> list[Diagnosis]:
    return await _by_email(db, Diagnosis, email)


async def list_prescriptions(db: AsyncSession, email: str) -> list[Prescription]:
    return await _by_email(db, Prescription, email)


async def list_studies(db: AsyncSession, email: str) -> list[MedicalStudy]:
    return await _by_email(db, MedicalStudy, email)


async def latest_diagnosis(db: AsyncSession, email: str) -> LatestDiagnosis | None:
    """Diagnóstico del registro de consulta más reciente, o None."""
    records = await list_records(db, email)
    if not records:
        return None
    latest = records[0]
    return LatestDiagnosis(
        id=latest.id,
        diagnosis=latest.diagnosis,
        notes=latest.notes,
        doctor_name=latest.doctor_name,
        date=latest.date,
    )


# ── Vista del médico ─────────────────────────────────

async def get_patient_info(
    db: AsyncSession, user: User, appointment_id: UUID
) -> PatientInfoResponse:
    """Perfil del paciente del turno más todo su historial clínico."""
    appointment = await get_own_appointment(db, user, appointment_id)
    email = appointment.patient_email

    patient_result = await db.execute(
        select(User).where(User.email == email, User.role == UserRole.PATIENT)
    )
    patient = patient_result.scalar_one_or_none()

    return PatientInfoResponse(
        patient=PatientProfile.model_validate(patient) if patient else None,
        appointment=AppointmentResponse.model_validate(appointment),
        medical_records=[
            MedicalRecordResponse.model_validate(r) for r in await list_records(db, email)
        ],
        prescriptions=[
            PrescriptionResponse.model_validate(p)
            for p in await list_prescriptions(db, email)
        ],
        diagnoses=[
            DiagnosisResponse.model_validate(d) for d in await list_diagnoses(db, email)
        ],
        studies=[
            StudyResponse.model_validate(s) for s in await list_studies(db, email)
        ],
    )
