"""
Endpoints de turnos: alta validada, listados por rol, disponibilidad,
cambio de estado, cancelación y reprogramación.
"""

import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, require_role
from app.core.exceptions import BadRequestException
from app.database import get_db
from app.models.appointment import AppointmentStatus
from app.models.user import User, UserRole
from app.schemas.appointment import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusChange,
    AppointmentUpdate,
    AvailabilityResponse,
    DoctorAppointmentSlot,
)
from app.services import appointment_service
from app.services.scheduling import SchedulingError

router = APIRouter()


def _booking_result(result):
    if isinstance(result, SchedulingError):
        raise BadRequestException(result.message)
    return result


# ── Listados ─────────────────────────────────────────

@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    doctor_id: UUID | None = Query(None, description="Filtrar por médico"),
    status: AppointmentStatus | None = Query(None, description="Filtrar por estado"),
    target_date: dt.date | None = Query(None, alias="date", description="Fecha (YYYY-MM-DD)"),
    user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Todos los turnos, con filtros opcionales por médico, estado y fecha."""
    return await appointment_service.list_appointments(
        db, doctor_id=doctor_id, status=status, date=target_date
    )


@router.get("/my-appointments", response_model=list[AppointmentResponse])
async def my_appointments(
    user: User = Depends(require_role(UserRole.PATIENT)),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_service.list_by_patient_email(db, user.email)


@router.get("/doctor/{doctor_id}", response_model=list[DoctorAppointmentSlot])
async def doctor_appointments(
    doctor_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Ocupación de la agenda de un médico, sin datos de pacientes."""
    return await appointment_service.list_by_doctor(db, doctor_id)


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    doctor_id: UUID = Query(..., description="ID del médico"),
    target_date: dt.date = Query(..., alias="date", description="Fecha (YYYY-MM-DD)"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Slots de 30 minutos del médico en la fecha, generados a partir de sus
    asignaciones de consultorio. Los ocupados vienen con available=false.
    """
    return await appointment_service.get_availability(db, doctor_id, target_date)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    appointment = await appointment_service.get_appointment(db, appointment_id)
    appointment_service.ensure_can_view(appointment, user)
    return appointment


# ── Alta y edición ───────────────────────────────────

@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Reserva un turno. Debe caer dentro de una asignación de consultorio
    del médico y el slot no puede estar ocupado (400 en caso contrario).
    """
    result = await appointment_service.create_appointment(db, user, data)
    return _booking_result(result)


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    result = await appointment_service.update_appointment(db, appointment_id, data)
    return _booking_result(result)


# ── Estados ──────────────────────────────────────────

@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def change_status(
    appointment_id: UUID,
    data: AppointmentStatusChange,
    user: User = Depends(require_role(UserRole.ADMIN, UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db),
):
    """
    Cambia el estado según la state machine:
    pendiente → confirmada | cancelada, confirmada → completada | cancelada.
    Cancelar exige `cancellationReason`.
    """
    return await appointment_service.change_status(db, appointment_id, user, data)


@router.patch("/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_appointment(
    appointment_id: UUID,
    user: User = Depends(require_role(UserRole.PATIENT)),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_service.confirm_by_patient(db, appointment_id, user)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: UUID,
    data: AppointmentCancel,
    user: User = Depends(require_role(UserRole.PATIENT)),
    db: AsyncSession = Depends(get_db),
):
    """Cancelación del paciente: con motivo y al menos 24 horas de anticipación."""
    return await appointment_service.cancel_by_patient(
        db, appointment_id, user, data.cancellation_reason
    )


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: UUID,
    data: AppointmentReschedule,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await appointment_service.reschedule_appointment(
        db, appointment_id, user, data
    )
    return _booking_result(result)
