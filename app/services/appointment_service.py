"""
Servicio de turnos: alta validada contra las asignaciones de consultorio,
state machine de estados, cancelación, reprogramación y disponibilidad.
"""

import datetime as dt
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from app.models.appointment import (
    VALID_TRANSITIONS,
    ActorType,
    Appointment,
    AppointmentCancellation,
    AppointmentStatus,
    is_valid_transition,
)
from app.models.doctor import Doctor
from app.models.office_assignment import OfficeAssignment
from app.models.user import User, UserRole
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentStatusChange,
    AppointmentUpdate,
    AvailabilityResponse,
    TimeSlot,
)
from app.services.notification_service import (
    notify_appointment_cancelled,
    notify_appointment_created,
)
from app.services.scheduling import (
    SchedulingError,
    covering_assignments,
    generate_slots,
    slot_occupied_error,
    validate_booking,
)

settings = get_settings()
logger = logging.getLogger(__name__)

CANCELLATION_REASON_REQUIRED = "El motivo de cancelación es obligatorio"


# ── Helpers ──────────────────────────────────────────

def _role_actor(user: User) -> ActorType:
    return ActorType(user.role.value)


def hours_until(appointment: Appointment, now: dt.datetime | None = None) -> float:
    """Horas que faltan para el turno (hora local del consultorio)."""
    start = dt.datetime.combine(
        appointment.date, dt.time.fromisoformat(appointment.time)
    )
    now = now or dt.datetime.now()
    return (start - now).total_seconds() / 3600


async def _lock_doctor(db: AsyncSession, doctor_id: UUID) -> Doctor:
    """SELECT ... FOR UPDATE sobre el médico: serializa reservas concurrentes."""
    result = await db.execute(
        select(Doctor).where(Doctor.id == doctor_id).with_for_update()
    )
    doctor = result.scalar_one_or_none()
    if not doctor:
        raise NotFoundException("Médico")
    return doctor


async def _check_booking(
    db: AsyncSession,
    doctor_id: UUID,
    day: dt.date,
    time: str,
    exclude_appointment_id: UUID | None = None,
) -> SchedulingError | None:
    """Carga asignaciones y turnos del médico y corre el validador."""
    assignments_result = await db.execute(
        select(OfficeAssignment).where(
            OfficeAssignment.doctor_id == doctor_id,
            OfficeAssignment.month == day.month,
            OfficeAssignment.year == day.year,
        )
    )
    appointments_result = await db.execute(
        select(Appointment).where(
            Appointment.doctor_id == doctor_id,
            Appointment.date == day,
            Appointment.status != AppointmentStatus.CANCELADA,
        )
    )
    return validate_booking(
        assignments_result.scalars().all(),
        appointments_result.scalars().all(),
        doctor_id,
        day,
        time,
        slot_minutes=settings.SLOT_DURATION_MINUTES,
        exclude_appointment_id=exclude_appointment_id,
    )


async def _flush_or_slot_taken(db: AsyncSession) -> SchedulingError | None:
    """
    Flush de la escritura. Si el índice único parcial rechaza el turno
    (reserva concurrente del mismo slot) se informa como slot ocupado.
    """
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.info("Slot tomado por una reserva concurrente")
        return slot_occupied_error()
    return None


# ── Alta ─────────────────────────────────────────────

async def create_appointment(
    db: AsyncSession,
    user: User,
    data: AppointmentCreate,
) -> Appointment | SchedulingError:
    """
    Crea un turno validado contra las asignaciones del médico.

    - Un paciente solo reserva para su propio email; el nombre sale de su cuenta
    - Si reserva un admin y el DNI coincide con un paciente registrado, el
      turno se vincula a esa cuenta
    - El turno nace `pendiente`; si lo pide el personal, pasa a `confirmada`
      con la transición normal
    """
    patient_name = data.patient_name
    patient_email = str(data.patient_email)

    if user.role == UserRole.PATIENT:
        if patient_email.lower() != user.email.lower():
            raise ForbiddenException("Los pacientes solo pueden crear citas para sí mismos")
        patient_name = user.full_name
        patient_email = user.email

    if user.role == UserRole.ADMIN:
        linked = await db.execute(
            select(User).where(
                User.dni == data.patient_dni,
                User.role == UserRole.PATIENT,
            )
        )
        patient = linked.scalar_one_or_none()
        if patient:
            patient_email = patient.email
            patient_name = patient.full_name
            logger.info(f"Cita vinculada a la cuenta del paciente {patient.email}")

    doctor = await _lock_doctor(db, data.doctor_id)

    error = await _check_booking(db, doctor.id, data.date, data.time)
    if error:
        logger.info(f"Turno rechazado ({error.code}) para {doctor.name} {data.date} {data.time}")
        return error

    appointment = Appointment(
        patient_name=patient_name,
        patient_dni=data.patient_dni,
        patient_email=patient_email,
        doctor_id=doctor.id,
        doctor_name=doctor.name,
        date=data.date,
        time=data.time,
        reason=data.reason,
        status=AppointmentStatus.PENDIENTE,
    )
    db.add(appointment)

    error = await _flush_or_slot_taken(db)
    if error:
        return error

    logger.info(f"Turno creado: {appointment!r}")
    notify_appointment_created(db, appointment)

    # Solo el personal puede dar de alta un turno ya confirmado
    if data.status == AppointmentStatus.CONFIRMADA and user.role != UserRole.PATIENT:
        await _transition(db, appointment, AppointmentStatus.CONFIRMADA, _role_actor(user))
    return appointment


# ── Lecturas ─────────────────────────────────────────

async def get_appointment(db: AsyncSession, appointment_id: UUID) -> Appointment:
    result = await db.execute(
        select(Appointment).where(Appointment.id == appointment_id)
    )
    appointment = result.scalar_one_or_none()
    if not appointment:
        raise NotFoundException(detail="Cita no encontrada")
    return appointment


def ensure_can_view(appointment: Appointment, user: User) -> None:
    """Admin ve todo; el paciente sus turnos; el médico los de su agenda."""
    if user.role == UserRole.ADMIN:
        return
    if user.role == UserRole.PATIENT and appointment.patient_email == user.email:
        return
    if user.role == UserRole.DOCTOR and appointment.doctor_id == user.doctor_id:
        return
    raise ForbiddenException("No tienes permiso para ver esta cita")


async def list_appointments(
    db: AsyncSession,
    *,
    doctor_id: UUID | None = None,
    status: AppointmentStatus | None = None,
    date: dt.date | None = None,
) -> list[Appointment]:
    """Listado general (admin) con filtros opcionales."""
    query = select(Appointment)
    if doctor_id:
        query = query.where(Appointment.doctor_id == doctor_id)
    if status:
        query = query.where(Appointment.status == status)
    if date:
        query = query.where(Appointment.date == date)

    result = await db.execute(
        query.order_by(Appointment.date.desc(), Appointment.time.desc())
    )
    return list(result.scalars().all())


async def list_by_patient_email(db: AsyncSession, email: str) -> list[Appointment]:
    result = await db.execute(
        select(Appointment)
        .where(Appointment.patient_email == email)
        .order_by(Appointment.date.desc(), Appointment.time.desc())
    )
    return list(result.scalars().all())


async def list_by_doctor(db: AsyncSession, doctor_id: UUID) -> list[Appointment]:
    result = await db.execute(
        select(Appointment)
        .where(Appointment.doctor_id == doctor_id)
        .order_by(Appointment.date, Appointment.time)
    )
    return list(result.scalars().all())


async def get_availability(
    db: AsyncSession,
    doctor_id: UUID,
    target_date: dt.date,
) -> AvailabilityResponse:
    """
    Slots del médico en una fecha.

    1. Asignaciones del médico que cubren ese mes y día de la semana
    2. Slots de 30 minutos de cada bloque
    3. Marca como no disponibles los que ya tienen un turno no cancelado
    """
    doctor_result = await db.execute(select(Doctor).where(Doctor.id == doctor_id))
    if not doctor_result.scalar_one_or_none():
        raise NotFoundException("Médico")

    assignments_result = await db.execute(
        select(OfficeAssignment).where(
            OfficeAssignment.doctor_id == doctor_id,
            OfficeAssignment.month == target_date.month,
            OfficeAssignment.year == target_date.year,
        )
    )
    covering = covering_assignments(
        assignments_result.scalars().all(), doctor_id, target_date
    )

    taken_result = await db.execute(
        select(Appointment.time).where(
            Appointment.doctor_id == doctor_id,
            Appointment.date == target_date,
            Appointment.status != AppointmentStatus.CANCELADA,
        )
    )
    taken = set(taken_result.scalars().all())

    slots = [
        TimeSlot(time=slot, office_name=assignment.office_name, available=slot not in taken)
        for assignment in covering
        for slot in generate_slots(
            assignment.start_time, assignment.end_time, settings.SLOT_DURATION_MINUTES
        )
    ]
    slots.sort(key=lambda s: s.time)

    return AvailabilityResponse(doctor_id=doctor_id, date=target_date, slots=slots)


# ── Edición administrativa ───────────────────────────

async def update_appointment(
    db: AsyncSession,
    appointment_id: UUID,
    data: AppointmentUpdate,
) -> Appointment | SchedulingError:
    """
    Actualiza campos sueltos del turno (override de admin: no se vuelve a
    validar contra las asignaciones). El estado se cambia por change_status.
    """
    appointment = await get_appointment(db, appointment_id)
    update_fields = data.model_dump(exclude_unset=True)

    if update_fields.get("doctor_id"):
        doctor_result = await db.execute(
            select(Doctor).where(Doctor.id == update_fields["doctor_id"])
        )
        doctor = doctor_result.scalar_one_or_none()
        if not doctor:
            raise NotFoundException("Médico")
        appointment.doctor_name = doctor.name

    for field, value in update_fields.items():
        if value is not None:
            setattr(appointment, field, value)

    error = await _flush_or_slot_taken(db)
    if error:
        return error
    return appointment


# ── State machine ────────────────────────────────────

async def _transition(
    db: AsyncSession,
    appointment: Appointment,
    new_status: AppointmentStatus,
    actor: ActorType,
    cancellation_reason: str | None = None,
) -> Appointment:
    """
    Aplica una transición de estado. Único punto donde cambia `status`.
    Cancelar exige motivo y deja registro en appointment_cancellations.
    """
    reason = (cancellation_reason or "").strip()
    if new_status == AppointmentStatus.CANCELADA and not reason:
        raise BadRequestException(CANCELLATION_REASON_REQUIRED)

    if not is_valid_transition(appointment.status, new_status):
        valid = VALID_TRANSITIONS.get(appointment.status, [])
        raise ValidationException(
            f"No se puede cambiar de '{appointment.status.value}' a '{new_status.value}'. "
            f"Transiciones válidas: {', '.join(s.value for s in valid) or 'ninguna'}"
        )

    old_status = appointment.status
    appointment.status = new_status

    if new_status == AppointmentStatus.CONFIRMADA:
        appointment.confirmed_by = actor
    elif new_status == AppointmentStatus.CANCELADA:
        appointment.cancelled_by = actor
        appointment.cancellation_reason = reason
        db.add(AppointmentCancellation(
            appointment_id=appointment.id,
            reason=reason,
            cancelled_by=actor,
        ))

    await db.flush()
    logger.info(
        f"Cita {appointment.id}: {old_status.value} → {new_status.value} ({actor.value})"
    )

    if new_status == AppointmentStatus.CANCELADA:
        notify_appointment_cancelled(db, appointment)
    return appointment


async def change_status(
    db: AsyncSession,
    appointment_id: UUID,
    user: User,
    data: AppointmentStatusChange,
) -> Appointment:
    """Cambio de estado por admin o por el médico del turno (sin ventana de aviso)."""
    appointment = await get_appointment(db, appointment_id)

    if user.role == UserRole.DOCTOR and appointment.doctor_id != user.doctor_id:
        raise ForbiddenException("No tienes permiso para modificar esta cita")

    return await _transition(
        db, appointment, data.status, _role_actor(user), data.cancellation_reason
    )


async def confirm_by_patient(
    db: AsyncSession, appointment_id: UUID, user: User
) -> Appointment:
    appointment = await get_appointment(db, appointment_id)
    if appointment.patient_email != user.email:
        raise ForbiddenException("No tienes permiso para confirmar esta cita")

    return await _transition(db, appointment, AppointmentStatus.CONFIRMADA, ActorType.PATIENT)


async def cancel_by_patient(
    db: AsyncSession,
    appointment_id: UUID,
    user: User,
    reason: str,
    now: dt.datetime | None = None,
) -> Appointment:
    """Cancelación del paciente: motivo obligatorio y aviso mínimo de 24 horas."""
    appointment = await get_appointment(db, appointment_id)
    if appointment.patient_email != user.email:
        raise ForbiddenException("No tienes permiso para cancelar esta cita")

    if hours_until(appointment, now) < settings.CANCELLATION_NOTICE_HOURS:
        raise BadRequestException(
            f"No se puede cancelar con menos de {settings.CANCELLATION_NOTICE_HOURS} "
            "horas de anticipación"
        )

    return await _transition(
        db, appointment, AppointmentStatus.CANCELADA, ActorType.PATIENT, reason
    )


async def complete_appointment(
    db: AsyncSession, appointment: Appointment
) -> Appointment:
    """Cierre de la consulta por el médico."""
    return await _transition(db, appointment, AppointmentStatus.COMPLETADA, ActorType.DOCTOR)


# ── Reprogramación ───────────────────────────────────

async def reschedule_appointment(
    db: AsyncSession,
    appointment_id: UUID,
    user: User,
    data: AppointmentReschedule,
    now: dt.datetime | None = None,
) -> Appointment | SchedulingError:
    """
    Mueve el turno a otra fecha/hora del mismo médico y lo vuelve a
    'pendiente'. El nuevo horario pasa por el mismo validador que un alta.
    """
    appointment = await get_appointment(db, appointment_id)
    ensure_can_view(appointment, user)

    if user.role == UserRole.PATIENT:
        if hours_until(appointment, now) < settings.CANCELLATION_NOTICE_HOURS:
            raise BadRequestException(
                f"No se puede reagendar con menos de {settings.CANCELLATION_NOTICE_HOURS} "
                "horas de anticipación"
            )

    if not VALID_TRANSITIONS.get(appointment.status):
        raise ValidationException(
            f"No se puede reagendar una cita en estado '{appointment.status.value}'"
        )

    await _lock_doctor(db, appointment.doctor_id)
    error = await _check_booking(
        db, appointment.doctor_id, data.date, data.time,
        exclude_appointment_id=appointment.id,
    )
    if error:
        return error

    appointment.date = data.date
    appointment.time = data.time
    appointment.status = AppointmentStatus.PENDIENTE
    appointment.confirmed_by = None
    appointment.reminder_sent = False

    error = await _flush_or_slot_taken(db)
    if error:
        return error

    logger.info(f"Cita {appointment.id} reprogramada a {data.date} {data.time}")
    return appointment
