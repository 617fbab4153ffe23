"""
Servicio de asignaciones de consultorio: alta, edición y baja con
validación de conflictos por consultorio y por médico.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.database import utcnow
from app.models.appointment import Appointment, AppointmentStatus
from app.models.doctor import Doctor
from app.models.office import Office
from app.models.office_assignment import OfficeAssignment
from app.schemas.office_assignment import OfficeAssignmentCreate
from app.services.scheduling import (
    AvailabilityResult,
    SchedulingError,
    covering_assignments,
    doctor_conflict_error,
    find_conflicts,
    normalize_week_days,
    office_conflict_error,
)

logger = logging.getLogger(__name__)


# ── Disponibilidad ───────────────────────────────────

async def check_office_availability(
    db: AsyncSession,
    office_id: UUID,
    month: int,
    year: int,
    week_days: list[int],
    start_time: str,
    end_time: str,
    exclude_assignment_id: UUID | None = None,
) -> AvailabilityResult:
    """Asignaciones del consultorio en el período que chocan con el bloque pedido."""
    result = await db.execute(
        select(OfficeAssignment).where(
            OfficeAssignment.office_id == office_id,
            OfficeAssignment.month == month,
            OfficeAssignment.year == year,
        )
    )
    return find_conflicts(
        result.scalars().all(),
        week_days,
        start_time,
        end_time,
        exclude_assignment_id=exclude_assignment_id,
    )


async def check_doctor_availability(
    db: AsyncSession,
    doctor_id: UUID,
    month: int,
    year: int,
    week_days: list[int],
    start_time: str,
    end_time: str,
    exclude_assignment_id: UUID | None = None,
) -> AvailabilityResult:
    """Asignaciones del médico en el período que chocan con el bloque pedido."""
    result = await db.execute(
        select(OfficeAssignment).where(
            OfficeAssignment.doctor_id == doctor_id,
            OfficeAssignment.month == month,
            OfficeAssignment.year == year,
        )
    )
    return find_conflicts(
        result.scalars().all(),
        week_days,
        start_time,
        end_time,
        exclude_assignment_id=exclude_assignment_id,
    )


async def _lock_office_and_doctor(
    db: AsyncSession, office_id: UUID, doctor_id: UUID
) -> tuple[Office, Doctor]:
    """
    Bloquea las filas de consultorio y médico (SELECT ... FOR UPDATE) para
    que el chequeo de conflictos y la escritura sean atómicos.
    """
    office_result = await db.execute(
        select(Office).where(Office.id == office_id).with_for_update()
    )
    office = office_result.scalar_one_or_none()
    if not office:
        raise NotFoundException("Consultorio")

    doctor_result = await db.execute(
        select(Doctor).where(Doctor.id == doctor_id).with_for_update()
    )
    doctor = doctor_result.scalar_one_or_none()
    if not doctor:
        raise NotFoundException("Médico")

    return office, doctor


async def _validate_block(
    db: AsyncSession,
    data: OfficeAssignmentCreate,
    week_days: list[int],
    exclude_assignment_id: UUID | None = None,
) -> SchedulingError | None:
    office_check = await check_office_availability(
        db, data.office_id, data.month, data.year, week_days,
        data.start_time, data.end_time, exclude_assignment_id,
    )
    if not office_check.available:
        return office_conflict_error(office_check.conflicts)

    doctor_check = await check_doctor_availability(
        db, data.doctor_id, data.month, data.year, week_days,
        data.start_time, data.end_time, exclude_assignment_id,
    )
    if not doctor_check.available:
        return doctor_conflict_error(doctor_check.conflicts)

    return None


# ── CRUD ─────────────────────────────────────────────

async def create_assignment(
    db: AsyncSession,
    data: OfficeAssignmentCreate,
) -> OfficeAssignment | SchedulingError:
    """Crea una asignación si no choca con otra del consultorio ni del médico."""
    office, doctor = await _lock_office_and_doctor(db, data.office_id, data.doctor_id)
    week_days = normalize_week_days(data.week_days)

    error = await _validate_block(db, data, week_days)
    if error:
        logger.info(f"Asignación rechazada ({error.code}): {error.message}")
        return error

    assignment = OfficeAssignment(
        office_id=office.id,
        office_name=office.name,
        doctor_id=doctor.id,
        doctor_name=doctor.name,
        month=data.month,
        year=data.year,
        week_days=week_days,
        start_time=data.start_time,
        end_time=data.end_time,
    )
    db.add(assignment)
    await db.flush()

    logger.info(f"Asignación creada: {assignment!r}")
    return assignment


async def update_assignment(
    db: AsyncSession,
    assignment_id: UUID,
    data: OfficeAssignmentCreate,
) -> OfficeAssignment | SchedulingError | None:
    """
    Reemplaza todos los campos de una asignación. Se valida como una
    asignación nueva, ignorándose a sí misma. None si no existe.
    """
    assignment = await get_assignment(db, assignment_id)
    if assignment is None:
        return None

    office, doctor = await _lock_office_and_doctor(db, data.office_id, data.doctor_id)
    week_days = normalize_week_days(data.week_days)

    error = await _validate_block(db, data, week_days, exclude_assignment_id=assignment_id)
    if error:
        logger.info(f"Edición de asignación {assignment_id} rechazada ({error.code})")
        return error

    assignment.office_id = office.id
    assignment.office_name = office.name
    assignment.doctor_id = doctor.id
    assignment.doctor_name = doctor.name
    assignment.month = data.month
    assignment.year = data.year
    assignment.week_days = week_days
    assignment.start_time = data.start_time
    assignment.end_time = data.end_time
    await db.flush()

    return assignment


async def delete_assignment(db: AsyncSession, assignment_id: UUID) -> bool:
    """
    Elimina la asignación. Los turnos ya reservados dentro de ella se
    conservan; se registra cuántos quedan sin asignación.
    """
    assignment = await get_assignment(db, assignment_id)
    if assignment is None:
        return False

    orphaned = await _count_future_appointments(db, assignment)
    await db.delete(assignment)
    await db.flush()

    if orphaned:
        logger.warning(
            f"Asignación {assignment_id} eliminada con {orphaned} turnos futuros sin consultorio"
        )
    return True


async def _count_future_appointments(
    db: AsyncSession, assignment: OfficeAssignment
) -> int:
    today = utcnow().date()
    result = await db.execute(
        select(Appointment).where(
            Appointment.doctor_id == assignment.doctor_id,
            Appointment.date >= today,
            Appointment.status != AppointmentStatus.CANCELADA,
        )
    )
    return sum(
        1 for appt in result.scalars().all()
        if covering_assignments([assignment], assignment.doctor_id, appt.date)
        and assignment.start_time <= appt.time < assignment.end_time
    )


async def get_assignment(
    db: AsyncSession, assignment_id: UUID
) -> OfficeAssignment | None:
    result = await db.execute(
        select(OfficeAssignment).where(OfficeAssignment.id == assignment_id)
    )
    return result.scalar_one_or_none()


async def list_assignments(db: AsyncSession) -> list[OfficeAssignment]:
    """Todas las asignaciones, de la más reciente a la más antigua."""
    result = await db.execute(
        select(OfficeAssignment).order_by(
            OfficeAssignment.year.desc(),
            OfficeAssignment.month.desc(),
            OfficeAssignment.office_name,
        )
    )
    return list(result.scalars().all())
