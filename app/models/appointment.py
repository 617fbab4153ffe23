"""
Modelo Appointment: Turnos médicos con state machine de estados.

Estados válidos y transiciones:
    pendiente → confirmada → completada
    pendiente → cancelada
    confirmada → cancelada

Un turno cancelado libera el slot: el índice único parcial solo cubre
turnos no cancelados.
"""

import datetime as dt
import enum
import uuid

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class AppointmentStatus(str, enum.Enum):
    """Estados de un turno."""
    PENDIENTE = "pendiente"
    CONFIRMADA = "confirmada"
    COMPLETADA = "completada"
    CANCELADA = "cancelada"


class ActorType(str, enum.Enum):
    """Quién confirmó o canceló el turno."""
    ADMIN = "admin"
    PATIENT = "patient"
    DOCTOR = "doctor"


# ── Transiciones válidas de la state machine ─────────
VALID_TRANSITIONS: dict[AppointmentStatus, list[AppointmentStatus]] = {
    AppointmentStatus.PENDIENTE: [
        AppointmentStatus.CONFIRMADA,
        AppointmentStatus.CANCELADA,
    ],
    AppointmentStatus.CONFIRMADA: [
        AppointmentStatus.COMPLETADA,
        AppointmentStatus.CANCELADA,
    ],
    # Estados terminales: no tienen transiciones
    AppointmentStatus.COMPLETADA: [],
    AppointmentStatus.CANCELADA: [],
}


def is_valid_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    """Verifica si una transición de estado es válida."""
    return new in VALID_TRANSITIONS.get(current, [])


def _enum_values(enum_cls) -> list[str]:
    return [m.value for m in enum_cls]


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    # ── Paciente ─────────────────────────────────────
    patient_name: Mapped[str] = mapped_column(String(200), nullable=False)
    patient_dni: Mapped[str] = mapped_column(String(15), nullable=False)
    patient_email: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )

    # ── Médico ───────────────────────────────────────
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("doctors.id"), nullable=False
    )
    doctor_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # ── Datos del turno ──────────────────────────────
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[str] = mapped_column(
        String(5), nullable=False, comment="Inicio del slot, formato HH:MM"
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus, values_callable=_enum_values),
        nullable=False,
        default=AppointmentStatus.PENDIENTE,
    )

    # ── Metadata de confirmación / cancelación ───────
    confirmed_by: Mapped[ActorType | None] = mapped_column(
        Enum(ActorType, values_callable=_enum_values)
    )
    cancelled_by: Mapped[ActorType | None] = mapped_column(
        Enum(ActorType, values_callable=_enum_values)
    )
    cancellation_reason: Mapped[str | None] = mapped_column(String(500))
    reminder_sent: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    # ── Índices ──────────────────────────────────────
    # uq_appointment_doctor_slot: a lo sumo un turno no cancelado por
    # médico/fecha/hora, también bajo escrituras concurrentes.
    __table_args__ = (
        Index(
            "uq_appointment_doctor_slot",
            "doctor_id", "date", "time",
            unique=True,
            sqlite_where=text("status <> 'cancelada'"),
            postgresql_where=text("status <> 'cancelada'"),
        ),
        Index("idx_appointment_doctor_date", "doctor_id", "date"),
        Index("idx_appointment_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Appointment {self.id} [{self.status.value}] {self.date} {self.time}>"


class AppointmentCancellation(Base):
    """Registro histórico de cada cancelación (INSERT-only)."""
    __tablename__ = "appointment_cancellations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    appointment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("appointments.id"), nullable=False, index=True
    )
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    cancelled_by: Mapped[ActorType] = mapped_column(
        Enum(ActorType, values_callable=_enum_values), nullable=False
    )
    cancelled_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
