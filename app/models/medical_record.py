"""
Modelos de historia clínica: registro de consulta, diagnósticos, recetas y
estudios.

INSERT-only: no hay endpoints de edición ni borrado. Los registros se
identifican por el email/DNI del paciente, igual que los turnos.
"""

import datetime as dt
import enum
import uuid

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class Severity(str, enum.Enum):
    """Gravedad de un diagnóstico."""
    LEVE = "leve"
    MODERADO = "moderado"
    GRAVE = "grave"


class MedicalRecord(Base):
    __tablename__ = "medical_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    patient_email: Mapped[str] = mapped_column(String(255), nullable=False)
    patient_dni: Mapped[str] = mapped_column(String(15), nullable=False)
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("doctors.id"), nullable=False
    )
    doctor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    appointment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("appointments.id"),
        comment="Turno que originó la consulta"
    )

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    diagnosis: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notes: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    __table_args__ = (
        Index("idx_record_patient", "patient_email"),
        Index("idx_record_doctor", "doctor_id"),
    )

    def __repr__(self) -> str:
        return f"<MedicalRecord {self.patient_email} {self.date}>"


class Diagnosis(Base):
    __tablename__ = "diagnoses"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    medical_record_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("medical_records.id")
    )
    patient_email: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    patient_dni: Mapped[str] = mapped_column(String(15), nullable=False)
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("doctors.id"), nullable=False
    )
    doctor_name: Mapped[str] = mapped_column(String(200), nullable=False)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    condition: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    severity: Mapped[Severity] = mapped_column(
        Enum(Severity, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Severity.MODERADO,
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


class Prescription(Base):
    __tablename__ = "prescriptions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    medical_record_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("medical_records.id")
    )
    patient_email: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    patient_dni: Mapped[str] = mapped_column(String(15), nullable=False)
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("doctors.id"), nullable=False
    )
    doctor_name: Mapped[str] = mapped_column(String(200), nullable=False)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    medication: Mapped[str] = mapped_column(String(200), nullable=False)
    dosage: Mapped[str] = mapped_column(String(100), nullable=False)
    frequency: Mapped[str] = mapped_column(String(100), nullable=False)
    duration: Mapped[str] = mapped_column(String(100), nullable=False)
    instructions: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


class MedicalStudy(Base):
    __tablename__ = "medical_studies"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    medical_record_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("medical_records.id")
    )
    patient_email: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True
    )
    patient_dni: Mapped[str] = mapped_column(String(15), nullable=False)
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("doctors.id"), nullable=False
    )
    doctor_name: Mapped[str | None] = mapped_column(String(200))

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    study_type: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="Laboratorio, imagen, etc."
    )
    study_name: Mapped[str] = mapped_column(String(200), nullable=False)
    result: Mapped[str | None] = mapped_column(Text)
    observations: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
