"""
Tareas Celery para notificaciones por email.
Los payloads viajan como dicts JSON: la tarea no necesita la DB para
armar el mensaje.
"""

import asyncio
import logging

from app.services.email_service import (
    EmailError,
    build_appointment_confirmation,
    build_appointment_reminder,
    build_cancellation_email,
    build_password_reset_email,
    build_prescription_notification,
    build_username_recovery_email,
    build_verification_email,
    send_email,
)
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=2,
    default_retry_delay=30,
    name="email.send_verification",
)
def send_verification_email_task(self, email: str, first_name: str, token: str):
    """Envía el link de verificación de cuenta."""
    subject, body = build_verification_email(first_name, token)
    try:
        return send_email(email, subject, body)
    except EmailError as exc:
        raise self.retry(exc=exc)


@celery_app.task(
    bind=True,
    max_retries=2,
    default_retry_delay=30,
    name="email.send_password_reset",
)
def send_password_reset_task(self, email: str, first_name: str, code: str):
    """Envía el código de 6 dígitos para restablecer la contraseña."""
    subject, body = build_password_reset_email(first_name, code)
    try:
        return send_email(email, subject, body)
    except EmailError as exc:
        raise self.retry(exc=exc)


@celery_app.task(
    bind=True,
    max_retries=2,
    default_retry_delay=30,
    name="email.send_username_recovery",
)
def send_username_recovery_task(self, email: str, first_name: str):
    subject, body = build_username_recovery_email(first_name, email)
    try:
        return send_email(email, subject, body)
    except EmailError as exc:
        raise self.retry(exc=exc)


@celery_app.task(
    bind=True,
    max_retries=2,
    default_retry_delay=30,
    name="email.send_appointment_confirmation",
)
def send_appointment_confirmation_task(self, appointment: dict):
    """Comprobante del turno recién creado."""
    subject, body = build_appointment_confirmation(appointment)
    try:
        return send_email(appointment["patient_email"], subject, body)
    except EmailError as exc:
        raise self.retry(exc=exc)


@celery_app.task(
    bind=True,
    max_retries=2,
    default_retry_delay=30,
    name="email.send_cancellation",
)
def send_cancellation_email_task(self, appointment: dict):
    """Avisa al paciente que su turno fue cancelado, con el motivo."""
    subject, body = build_cancellation_email(appointment)
    try:
        return send_email(appointment["patient_email"], subject, body)
    except EmailError as exc:
        raise self.retry(exc=exc)


@celery_app.task(
    bind=True,
    max_retries=2,
    default_retry_delay=30,
    name="email.send_prescription",
)
def send_prescription_notification_task(self, prescription: dict):
    subject, body = build_prescription_notification(prescription)
    try:
        return send_email(prescription["patient_email"], subject, body)
    except EmailError as exc:
        raise self.retry(exc=exc)


@celery_app.task(
    bind=True,
    max_retries=2,
    default_retry_delay=30,
    name="email.send_reminder",
)
def send_appointment_reminder_task(self, appointment: dict):
    subject, body = build_appointment_reminder(appointment)
    try:
        return send_email(appointment["patient_email"], subject, body)
    except EmailError as exc:
        raise self.retry(exc=exc)


@celery_app.task(name="email.send_daily_reminders")
def send_daily_reminders():
    """
    Task periódico (cron): encola recordatorios para los turnos de mañana.
    Programado con Celery Beat a las 18:00.
    """
    async def _process():
        from app.database import async_session_factory
        from app.services.notification_service import queue_tomorrow_reminders

        async with async_session_factory() as db:
            queued = await queue_tomorrow_reminders(db)
            await db.commit()
        logger.info(f"Encolados {queued} recordatorios para mañana")

    asyncio.run(_process())
