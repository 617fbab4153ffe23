"""
Despacho de notificaciones por email (fire-and-forget).

Las notificaciones de una operación se encolan recién cuando la sesión
hace commit: si la transacción se revierte, se descartan. Un fallo al
encolar (broker caído, etc.) se registra y nunca afecta a la operación
que lo originó.
"""

import logging
from datetime import timedelta

from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.database import utcnow
from app.models.appointment import Appointment, AppointmentStatus
from app.models.medical_record import Prescription
from app.tasks.email_tasks import (
    send_appointment_confirmation_task,
    send_appointment_reminder_task,
    send_cancellation_email_task,
    send_password_reset_task,
    send_prescription_notification_task,
    send_username_recovery_task,
    send_verification_email_task,
)

logger = logging.getLogger(__name__)

PENDING_KEY = "pending_notifications"


def appointment_payload(appointment: Appointment) -> dict:
    """Datos del turno serializables a JSON para las tareas de email."""
    return {
        "id": str(appointment.id),
        "patient_name": appointment.patient_name,
        "patient_email": appointment.patient_email,
        "doctor_name": appointment.doctor_name,
        "date": appointment.date.isoformat(),
        "time": appointment.time,
        "reason": appointment.reason,
        "cancellation_reason": appointment.cancellation_reason,
    }


def _dispatch(task, *args) -> bool:
    try:
        task.delay(*args)
        return True
    except Exception as e:
        logger.warning(f"No se pudo encolar {task.name}: {e}")
        return False


def _defer(db: AsyncSession, task, *args) -> None:
    """Deja la tarea pendiente hasta el commit de la sesión."""
    db.sync_session.info.setdefault(PENDING_KEY, []).append((task, args))


@event.listens_for(Session, "after_commit")
def _dispatch_pending(session: Session) -> None:
    for task, args in session.info.pop(PENDING_KEY, []):
        _dispatch(task, *args)


@event.listens_for(Session, "after_rollback")
def _discard_pending(session: Session) -> None:
    discarded = session.info.pop(PENDING_KEY, [])
    if discarded:
        logger.info(f"Rollback: se descartan {len(discarded)} notificaciones pendientes")


# ── Cuenta ───────────────────────────────────────────

def notify_verification(db: AsyncSession, email: str, first_name: str, token: str) -> None:
    _defer(db, send_verification_email_task, email, first_name, token)


def notify_password_reset(db: AsyncSession, email: str, first_name: str, code: str) -> None:
    _defer(db, send_password_reset_task, email, first_name, code)


def notify_username_recovery(db: AsyncSession, email: str, first_name: str) -> None:
    _defer(db, send_username_recovery_task, email, first_name)


# ── Turnos y recetas ─────────────────────────────────

def notify_appointment_created(db: AsyncSession, appointment: Appointment) -> None:
    _defer(db, send_appointment_confirmation_task, appointment_payload(appointment))


def notify_appointment_cancelled(db: AsyncSession, appointment: Appointment) -> None:
    _defer(db, send_cancellation_email_task, appointment_payload(appointment))


def notify_prescription(
    db: AsyncSession, prescription: Prescription, patient_name: str
) -> None:
    payload = {
        "patient_name": patient_name,
        "patient_email": prescription.patient_email,
        "doctor_name": prescription.doctor_name,
        "medication": prescription.medication,
        "dosage": prescription.dosage,
        "frequency": prescription.frequency,
        "duration": prescription.duration,
        "instructions": prescription.instructions,
    }
    _defer(db, send_prescription_notification_task, payload)


async def queue_tomorrow_reminders(db: AsyncSession) -> int:
    """
    Encola un recordatorio por cada turno activo de mañana que aún no lo
    recibió, y lo marca como enviado.
    """
    tomorrow = utcnow().date() + timedelta(days=1)
    result = await db.execute(
        select(Appointment).where(
            Appointment.date == tomorrow,
            Appointment.status.in_([
                AppointmentStatus.PENDIENTE,
                AppointmentStatus.CONFIRMADA,
            ]),
            Appointment.reminder_sent.is_(False),
        )
    )
    queued = 0
    for appointment in result.scalars().all():
        if _dispatch(send_appointment_reminder_task, appointment_payload(appointment)):
            appointment.reminder_sent = True
            queued += 1

    await db.flush()
    return queued
