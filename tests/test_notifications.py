"""
Tests de notificaciones por email y de la carga de datos iniciales.
"""

import datetime as dt

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models.appointment import Appointment, AppointmentStatus
from app.models.doctor import Doctor
from app.models.office import Office
from app.models.user import User, UserRole
from app.schemas.appointment import AppointmentCreate
from app.services import appointment_service, email_service, notification_service
from app.services.seed_service import doctor_email, seed_demo_data
from app.tasks import email_tasks

APPOINTMENT = {
    "id": "c0ffee00-0000-0000-0000-000000000001",
    "patient_name": "Juan Pérez",
    "patient_email": "juan.perez@test.com",
    "doctor_name": "Dr. Ezequiel Mermet",
    "date": "2030-11-04",
    "time": "08:30",
    "reason": "Control anual",
    "cancellation_reason": "Viaje laboral",
}


# ── Envío ────────────────────────────────────────────

def test_send_email_without_smtp_is_simulated():
    result = email_service.send_email("juan.perez@test.com", "Hola", "Cuerpo")
    assert result == {
        "status": "simulated",
        "to": "juan.perez@test.com",
        "subject": "Hola",
    }


def test_confirmation_task_runs_eagerly():
    result = email_tasks.send_appointment_confirmation_task.delay(APPOINTMENT)
    assert result.get()["status"] == "simulated"
    assert result.get()["to"] == "juan.perez@test.com"


# ── Plantillas ───────────────────────────────────────

def test_verification_email_contains_link():
    subject, body = email_service.build_verification_email("Laura", "abc123")
    assert "Verifica tu email" in subject
    assert body.startswith("Hola Laura")
    assert "/api/auth/verify-email/abc123" in body


def test_password_reset_email_contains_code():
    subject, body = email_service.build_password_reset_email("Laura", "042137")
    assert subject.startswith("Código de recuperación")
    assert "042137" in body
    assert "15 minutos" in body


def test_username_recovery_email_contains_login_email():
    _, body = email_service.build_username_recovery_email("Laura", "laura.diaz@test.com")
    assert "Tu usuario para iniciar sesión es: laura.diaz@test.com" in body


def test_cancellation_email_includes_reason():
    subject, body = email_service.build_cancellation_email(APPOINTMENT)
    assert subject == "Cita cancelada - Dr. Ezequiel Mermet"
    assert "Motivo: Viaje laboral" in body


def test_cancellation_email_without_reason():
    _, body = email_service.build_cancellation_email(
        {**APPOINTMENT, "cancellation_reason": None}
    )
    assert "Motivo" not in body


def test_prescription_email_lists_medication():
    subject, body = email_service.build_prescription_notification({
        "patient_name": "Juan Pérez",
        "doctor_name": "Dr. Ezequiel Mermet",
        "medication": "Enalapril",
        "dosage": "10 mg",
        "frequency": "Cada 12 horas",
        "duration": "30 días",
        "instructions": "Tomar con las comidas",
    })
    assert subject == "Nueva receta médica - Enalapril"
    assert "Dosis: 10 mg" in body
    assert "Indicaciones: Tomar con las comidas" in body


# ── Despacho fire-and-forget ─────────────────────────

def _admin_booking(doctor, day: dt.date) -> AppointmentCreate:
    return AppointmentCreate(
        patient_name="Juan Pérez",
        patient_dni="40999888",
        patient_email="juan.perez@test.com",
        doctor_id=doctor.id,
        date=day,
        time="08:30",
        reason="Control anual",
    )


async def test_confirmation_is_queued_after_commit(
    db_session: AsyncSession, admin_user, doctor, assignment, monday, monkeypatch
):
    queued = []
    monkeypatch.setattr(
        email_tasks.send_appointment_confirmation_task, "delay", queued.append
    )

    appointment = await appointment_service.create_appointment(
        db_session, admin_user, _admin_booking(doctor, monday)
    )
    assert queued == []

    await db_session.commit()
    assert [payload["id"] for payload in queued] == [str(appointment.id)]


async def test_rollback_discards_pending_notifications(
    db_session: AsyncSession, admin_user, doctor, assignment, monday, monkeypatch
):
    queued = []
    monkeypatch.setattr(
        email_tasks.send_appointment_confirmation_task, "delay", queued.append
    )

    await appointment_service.create_appointment(
        db_session, admin_user, _admin_booking(doctor, monday)
    )
    await db_session.rollback()
    await db_session.commit()

    assert queued == []
    assert await db_session.scalar(select(func.count()).select_from(Appointment)) == 0


async def test_booking_survives_broken_broker(
    db_session: AsyncSession, admin_user, doctor, assignment, monday, monkeypatch
):
    def broken(*args, **kwargs):
        raise ConnectionError("broker no disponible")

    monkeypatch.setattr(
        email_tasks.send_appointment_confirmation_task, "delay", broken
    )

    await appointment_service.create_appointment(
        db_session, admin_user, _admin_booking(doctor, monday)
    )
    await db_session.commit()

    assert await db_session.scalar(select(func.count()).select_from(Appointment)) == 1


def test_dispatch_reports_failure(monkeypatch):
    def broken(*args, **kwargs):
        raise ConnectionError("broker no disponible")

    monkeypatch.setattr(email_tasks.send_verification_email_task, "delay", broken)
    assert notification_service._dispatch(
        email_tasks.send_verification_email_task, "a@test.com", "Ana", "tok"
    ) is False


async def test_queue_tomorrow_reminders(db_session: AsyncSession, doctor):
    tomorrow = utcnow().date() + dt.timedelta(days=1)

    def appointment(time: str, status: AppointmentStatus) -> Appointment:
        return Appointment(
            patient_name="Juan Pérez",
            patient_dni="40999888",
            patient_email="juan.perez@test.com",
            doctor_id=doctor.id,
            doctor_name=doctor.name,
            date=tomorrow,
            time=time,
            reason="Control",
            status=status,
        )

    active = appointment("08:00", AppointmentStatus.PENDIENTE)
    confirmed = appointment("08:30", AppointmentStatus.CONFIRMADA)
    cancelled = appointment("09:00", AppointmentStatus.CANCELADA)
    db_session.add_all([active, confirmed, cancelled])
    await db_session.commit()

    assert await notification_service.queue_tomorrow_reminders(db_session) == 2
    assert active.reminder_sent is True
    assert confirmed.reminder_sent is True
    assert cancelled.reminder_sent is False

    assert await notification_service.queue_tomorrow_reminders(db_session) == 0


# ── Datos iniciales ──────────────────────────────────

async def test_seed_demo_data_is_idempotent(db_session: AsyncSession):
    assert await seed_demo_data(db_session) is True
    await db_session.commit()

    doctors = await db_session.scalar(select(func.count()).select_from(Doctor))
    offices = await db_session.scalar(select(func.count()).select_from(Office))
    assert doctors == 6
    assert offices == 6

    result = await db_session.execute(select(User).where(User.role == UserRole.DOCTOR))
    doctor_users = result.scalars().all()
    assert len(doctor_users) == 6
    assert all(u.email_verified for u in doctor_users)

    assert await seed_demo_data(db_session) is False
    assert await db_session.scalar(select(func.count()).select_from(Doctor)) == 6


def test_doctor_email():
    doctor = Doctor(first_name="Ezequiel", last_name="Mermet")
    assert doctor_email(doctor) == "ezequiel.mermet@clinica.com"
