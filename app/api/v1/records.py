"""
Endpoints de historia clínica.

El médico registra sobre turnos de su propia agenda; el paciente solo
consulta su propio historial.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_doctor, require_role
from app.database import get_db
from app.models.user import User, UserRole
from app.schemas.appointment import AppointmentResponse
from app.schemas.medical_record import (
    CompleteConsultationRequest,
    DiagnosisCreate,
    DiagnosisResponse,
    LatestDiagnosis,
    MedicalRecordCreate,
    MedicalRecordResponse,
    PrescriptionCreate,
    PrescriptionResponse,
    StudyCreate,
    StudyResponse,
)
from app.services import medical_record_service

router = APIRouter()

doctor_only = get_current_doctor
patient_only = require_role(UserRole.PATIENT)


# ── Registro por el médico ───────────────────────────

@router.post("/medical-records", response_model=MedicalRecordResponse, status_code=201)
async def create_medical_record(
    data: MedicalRecordCreate,
    user: User = Depends(doctor_only),
    db: AsyncSession = Depends(get_db),
):
    return await medical_record_service.create_medical_record(db, user, data)


@router.post("/diagnoses", response_model=DiagnosisResponse, status_code=201)
async def create_diagnosis(
    data: DiagnosisCreate,
    user: User = Depends(doctor_only),
    db: AsyncSession = Depends(get_db),
):
    return await medical_record_service.create_diagnosis(db, user, data)


@router.post("/prescriptions", response_model=PrescriptionResponse, status_code=201)
async def create_prescription(
    data: PrescriptionCreate,
    user: User = Depends(doctor_only),
    db: AsyncSession = Depends(get_db),
):
    """Registra la receta y notifica al paciente por email."""
    return await medical_record_service.create_prescription(db, user, data)


@router.post("/studies", response_model=StudyResponse, status_code=201)
async def create_study(
    data: StudyCreate,
    user: User = Depends(doctor_only),
    db: AsyncSession = Depends(get_db),
):
    return await medical_record_service.create_study(db, user, data)


@router.post("/complete-consultation", response_model=AppointmentResponse)
async def complete_consultation(
    data: CompleteConsultationRequest,
    user: User = Depends(doctor_only),
    db: AsyncSession = Depends(get_db),
):
    """Marca el turno como completado (solo desde 'confirmada')."""
    return await medical_record_service.complete_consultation(
        db, user, data.appointment_id
    )


# ── Consultas del paciente ───────────────────────────

@router.get("/my-records", response_model=list[MedicalRecordResponse])
async def my_records(
    user: User = Depends(patient_only),
    db: AsyncSession = Depends(get_db),
):
    return await medical_record_service.list_records(db, user.email)


@router.get("/my-diagnoses", response_model=list[DiagnosisResponse])
async def my_diagnoses(
    user: User = Depends(patient_only),
    db: AsyncSession = Depends(get_db),
):
    return await medical_record_service.list_diagnoses(db, user.email)


@router.get("/my-prescriptions", response_model=list[PrescriptionResponse])
async def my_prescriptions(
    user: User = Depends(patient_only),
    db: AsyncSession = Depends(get_db),
):
    return await medical_record_service.list_prescriptions(db, user.email)


@router.get("/my-studies", response_model=list[StudyResponse])
async def my_studies(
    user: User = Depends(patient_only),
    db: AsyncSession = Depends(get_db),
):
    return await medical_record_service.list_studies(db, user.email)


@router.get("/latest-diagnosis", response_model=LatestDiagnosis | None)
async def latest_diagnosis(
    user: User = Depends(patient_only),
    db: AsyncSession = Depends(get_db),
):
    """Diagnóstico de la última consulta registrada, o null si no hay ninguna."""
    return await medical_record_service.latest_diagnosis(db, user.email)
