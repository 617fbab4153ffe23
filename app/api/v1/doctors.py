"""
Endpoints de médicos: directorio público y vistas del portal médico.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_doctor
from app.database import get_db
from app.models.user import User
from app.schemas.appointment import AppointmentResponse
from app.schemas.medical_record import PatientInfoResponse
from app.schemas.office import DoctorResponse
from app.services import appointment_service, doctor_service, medical_record_service

router = APIRouter()


@router.get("", response_model=list[DoctorResponse])
async def list_doctors(db: AsyncSession = Depends(get_db)):
    return await doctor_service.list_doctors(db)


@router.get("/specialty/{specialty}", response_model=list[DoctorResponse])
async def list_by_specialty(specialty: str, db: AsyncSession = Depends(get_db)):
    return await doctor_service.list_by_specialty(db, specialty)


@router.get("/my-appointments", response_model=list[AppointmentResponse])
async def my_appointments(
    user: User = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db),
):
    """Agenda completa del médico autenticado."""
    return await appointment_service.list_by_doctor(db, user.doctor_id)


@router.get("/patient-info/{appointment_id}", response_model=PatientInfoResponse)
async def patient_info(
    appointment_id: UUID,
    user: User = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db),
):
    """Perfil e historial clínico del paciente de uno de sus turnos."""
    return await medical_record_service.get_patient_info(db, user, appointment_id)
