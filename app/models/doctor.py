"""
Modelo Doctor: Registro profesional del médico.

`available_slots` es solo descriptivo: la disponibilidad real sale de
las asignaciones de consultorio (OfficeAssignment).
"""

import uuid

from sqlalchemy import JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Doctor(Base):
    __tablename__ = "doctors"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(
        String(200), nullable=False, comment="Nombre para mostrar: 'Dr. Nombre Apellido'"
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    specialty: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    license_number: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False, comment="Matrícula profesional"
    )
    available_slots: Mapped[list[str]] = mapped_column(JSON, default=list)

    def __repr__(self) -> str:
        return f"<Doctor {self.name} ({self.specialty})>"
