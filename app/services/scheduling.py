"""
Núcleo de agenda: solapamiento de horarios, generación de slots,
detección de conflictos entre asignaciones y validación de turnos.

Funciones puras, sin acceso a DB. Las reglas de negocio no lanzan
excepciones: devuelven un SchedulingError que la capa HTTP traduce
(409 para asignaciones, 400 para turnos).
"""

import datetime as dt
from dataclasses import dataclass, field
from typing import Iterable, Protocol
from uuid import UUID

SLOT_MINUTES = 30

# ── Mensajes de error de negocio ─────────────────────
OFFICE_CONFLICT = "El consultorio ya está ocupado en el horario seleccionado. Conflictos: {}"
DOCTOR_CONFLICT = (
    "El médico ya está asignado a otro consultorio en el horario seleccionado. "
    "Conflictos: {}"
)
DOCTOR_NOT_ASSIGNED = "El médico no tiene consultorio asignado para este mes"
DOCTOR_NOT_ASSIGNED_ON_DATE = "El médico no tiene consultorio asignado para esta fecha"
TIME_NOT_AVAILABLE = "El horario seleccionado no está disponible para este médico en este día"
SLOT_OCCUPIED = "Ya existe una cita para este médico en este horario"


class AssignmentLike(Protocol):
    id: UUID
    office_name: str
    doctor_id: UUID
    doctor_name: str
    month: int
    year: int
    week_days: list[int]
    start_time: str
    end_time: str


class AppointmentLike(Protocol):
    id: UUID
    doctor_id: UUID
    date: dt.date
    time: str
    status: str


@dataclass(frozen=True)
class SchedulingError:
    """Rechazo de una regla de agenda con su mensaje para el usuario."""
    code: str
    message: str


@dataclass
class AvailabilityResult:
    available: bool
    conflicts: list = field(default_factory=list)


# ── Tiempo ───────────────────────────────────────────

def time_to_minutes(value: str) -> int:
    """'HH:MM' → minutos desde medianoche."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def times_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """
    Dos rangos [start, end) se solapan si: start1 < end2 AND end1 > start2.
    Rangos que solo se tocan en un extremo no se solapan.
    """
    s1, e1 = time_to_minutes(start1), time_to_minutes(end1)
    s2, e2 = time_to_minutes(start2), time_to_minutes(end2)
    return s1 < e2 and e1 > s2


def generate_slots(start: str, end: str, step: int = SLOT_MINUTES) -> list[str]:
    """Slots 'HH:MM' desde start, cada `step` minutos, que terminan antes o en end."""
    slots: list[str] = []
    current = time_to_minutes(start)
    limit = time_to_minutes(end)

    while current + step <= limit:
        slots.append(minutes_to_time(current))
        current += step

    return slots


def weekday_of(day: dt.date) -> int:
    """Día de la semana con 0=Domingo ... 6=Sábado."""
    return day.isoweekday() % 7


def normalize_week_days(week_days: Iterable[int]) -> list[int]:
    return sorted(set(week_days))


# ── Conflictos entre asignaciones ────────────────────

def find_conflicts(
    existing: Iterable[AssignmentLike],
    week_days: Iterable[int],
    start_time: str,
    end_time: str,
    exclude_assignment_id: UUID | None = None,
) -> AvailabilityResult:
    """
    Conflictos de un bloque horario contra asignaciones ya filtradas por
    consultorio (o médico) y período. Hay conflicto si comparten al menos
    un día de la semana y los rangos horarios se solapan.
    """
    days = set(week_days)
    conflicts = [
        assignment
        for assignment in existing
        if assignment.id != exclude_assignment_id
        and days.intersection(assignment.week_days)
        and times_overlap(start_time, end_time, assignment.start_time, assignment.end_time)
    ]
    return AvailabilityResult(available=not conflicts, conflicts=conflicts)


def office_conflict_error(conflicts: Iterable[AssignmentLike]) -> SchedulingError:
    detail = ", ".join(
        f"{c.doctor_name} ({c.start_time} - {c.end_time})" for c in conflicts
    )
    return SchedulingError("office_conflict", OFFICE_CONFLICT.format(detail))


def doctor_conflict_error(conflicts: Iterable[AssignmentLike]) -> SchedulingError:
    detail = ", ".join(
        f"{c.office_name} ({c.start_time} - {c.end_time})" for c in conflicts
    )
    return SchedulingError("doctor_conflict", DOCTOR_CONFLICT.format(detail))


# ── Validación de turnos ─────────────────────────────

def covering_assignments(
    assignments: Iterable[AssignmentLike],
    doctor_id: UUID,
    day: dt.date,
) -> list[AssignmentLike]:
    """Asignaciones del médico vigentes para ese mes y día de la semana."""
    weekday = weekday_of(day)
    return [
        a for a in assignments
        if a.doctor_id == doctor_id
        and a.month == day.month
        and a.year == day.year
        and weekday in a.week_days
    ]


def validate_booking(
    assignments: Iterable[AssignmentLike],
    appointments: Iterable[AppointmentLike],
    doctor_id: UUID,
    day: dt.date,
    time: str,
    slot_minutes: int = SLOT_MINUTES,
    exclude_appointment_id: UUID | None = None,
) -> SchedulingError | None:
    """
    Verifica que un turno caiga dentro de una asignación del médico y que
    el slot esté libre. Devuelve None si el turno es válido.

    1. El médico tiene asignaciones en el mes/año de la fecha, y alguna
       incluye el día de la semana
    2. El slot completo [time, time + slot_minutes) entra en el bloque
    3. No hay otro turno no cancelado del médico en esa fecha y hora
    """
    in_period = [
        a for a in assignments
        if a.doctor_id == doctor_id and a.month == day.month and a.year == day.year
    ]
    if not in_period:
        return SchedulingError("doctor_not_assigned", DOCTOR_NOT_ASSIGNED)

    weekday = weekday_of(day)
    on_day = [a for a in in_period if weekday in a.week_days]
    if not on_day:
        return SchedulingError("doctor_not_assigned", DOCTOR_NOT_ASSIGNED_ON_DATE)

    requested = time_to_minutes(time)
    fits = any(
        time_to_minutes(a.start_time) <= requested
        and requested + slot_minutes <= time_to_minutes(a.end_time)
        for a in on_day
    )
    if not fits:
        return SchedulingError("time_not_available", TIME_NOT_AVAILABLE)

    for appointment in appointments:
        if (
            appointment.id != exclude_appointment_id
            and appointment.doctor_id == doctor_id
            and appointment.date == day
            and appointment.time == time
            and appointment.status != "cancelada"
        ):
            return SchedulingError("slot_occupied", SLOT_OCCUPIED)

    return None


def slot_occupied_error() -> SchedulingError:
    return SchedulingError("slot_occupied", SLOT_OCCUPIED)
