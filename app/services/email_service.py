"""
Servicio de envío de emails vía SMTP.

Envía mensajes de texto plano para:
- Verificación de cuenta (link con token)
- Código de recuperación de contraseña y recordatorio del usuario
- Confirmación de turno
- Cancelación de turno (con el motivo)
- Nueva receta médica
- Recordatorio del turno del día siguiente

Sin SMTP_HOST configurado funciona en modo simulación: solo registra
el mensaje en el log.
"""

import logging
import smtplib
from email.message import EmailMessage

from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class EmailError(Exception):
    """Error de comunicación con el servidor SMTP."""

    def __init__(self, message: str, recipient: str | None = None):
        self.message = message
        self.recipient = recipient
        super().__init__(message)


def send_email(to: str, subject: str, body: str) -> dict:
    """
    Envía un email de texto plano.

    Returns:
        dict con status ("sent" | "simulated"), destinatario y asunto.
    """
    # ── Modo simulación (sin servidor SMTP) ──────────
    if not settings.smtp_configured:
        logger.info(f"[SIMULATED EMAIL] To: {to} | Subject: {subject}")
        return {"status": "simulated", "to": to, "subject": subject}

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to
    msg.set_content(body)

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            if settings.SMTP_USERNAME:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error SMTP enviando a {to}: {e}")
        raise EmailError(f"Error enviando email: {e}", recipient=to)

    logger.info(f"Email enviado a {to} | Subject: {subject}")
    return {"status": "sent", "to": to, "subject": subject}


# ── Plantillas de mensajes ───────────────────────────

def build_verification_email(first_name: str, token: str) -> tuple[str, str]:
    link = f"{settings.FRONTEND_URL.rstrip('/')}/api/auth/verify-email/{token}"
    subject = f"Verifica tu email - {settings.APP_NAME}"
    body = (
        f"Hola {first_name},\n\n"
        "Gracias por registrarte. Para activar tu cuenta ingresá al siguiente link:\n\n"
        f"{link}\n\n"
        "Si no creaste esta cuenta, ignorá este mensaje."
    )
    return subject, body


def build_password_reset_email(first_name: str, code: str) -> tuple[str, str]:
    subject = f"Código de recuperación - {settings.APP_NAME}"
    body = (
        f"Hola {first_name},\n\n"
        f"Tu código para restablecer la contraseña es: {code}\n\n"
        f"El código vence en {settings.PASSWORD_RESET_CODE_MINUTES} minutos. "
        "Si no lo pediste, ignorá este mensaje."
    )
    return subject, body


def build_username_recovery_email(first_name: str, email: str) -> tuple[str, str]:
    subject = f"Recuperación de usuario - {settings.APP_NAME}"
    body = (
        f"Hola {first_name},\n\n"
        f"Tu usuario para iniciar sesión es: {email}\n\n"
        "Si no lo pediste, ignorá este mensaje."
    )
    return subject, body


def build_appointment_confirmation(appointment: dict) -> tuple[str, str]:
    subject = f"Confirmación de cita - {appointment['doctor_name']}"
    body = (
        f"Hola {appointment['patient_name']},\n\n"
        "Tu cita fue registrada con los siguientes datos:\n\n"
        f"  Médico: {appointment['doctor_name']}\n"
        f"  Fecha: {appointment['date']}\n"
        f"  Hora: {appointment['time']}\n"
        f"  Motivo: {appointment['reason']}\n\n"
        "Si no podés asistir, cancelala con al menos "
        f"{settings.CANCELLATION_NOTICE_HOURS} horas de anticipación."
    )
    return subject, body


def build_cancellation_email(appointment: dict) -> tuple[str, str]:
    subject = f"Cita cancelada - {appointment['doctor_name']}"
    body = (
        f"Hola {appointment['patient_name']},\n\n"
        f"Tu cita con {appointment['doctor_name']} del {appointment['date']} "
        f"a las {appointment['time']} fue cancelada.\n"
    )
    if appointment.get("cancellation_reason"):
        body += f"\nMotivo: {appointment['cancellation_reason']}\n"
    return subject, body


def build_prescription_notification(prescription: dict) -> tuple[str, str]:
    subject = f"Nueva receta médica - {prescription['medication']}"
    body = (
        f"Hola {prescription['patient_name']},\n\n"
        f"{prescription['doctor_name']} te indicó:\n\n"
        f"  Medicamento: {prescription['medication']}\n"
        f"  Dosis: {prescription['dosage']}\n"
        f"  Frecuencia: {prescription['frequency']}\n"
        f"  Duración: {prescription['duration']}\n"
    )
    if prescription.get("instructions"):
        body += f"  Indicaciones: {prescription['instructions']}\n"
    return subject, body


def build_appointment_reminder(appointment: dict) -> tuple[str, str]:
    subject = f"Recordatorio: mañana tenés cita con {appointment['doctor_name']}"
    body = (
        f"Hola {appointment['patient_name']},\n\n"
        f"Te recordamos tu cita de mañana {appointment['date']} a las "
        f"{appointment['time']} con {appointment['doctor_name']}."
    )
    return subject, body
