"""
Modelo OfficeAssignment: Asignación mensual de un consultorio a un médico.

Un mismo bloque horario (start_time-end_time) se repite en cada día de
`week_days` (0=Domingo ... 6=Sábado) dentro del mes/año indicado.
Las reglas de no-solapamiento por consultorio y por médico se validan en
app/services/office_assignment_service.py.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class OfficeAssignment(Base):
    __tablename__ = "office_assignments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    office_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("offices.id"), nullable=False
    )
    office_name: Mapped[str] = mapped_column(String(100), nullable=False)
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("doctors.id"), nullable=False
    )
    doctor_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # ── Período ──────────────────────────────────────
    month: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    year: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    # ── Días y bloque horario ────────────────────────
    week_days: Mapped[list[int]] = mapped_column(
        JSON, nullable=False, default=list,
        comment="0=Domingo, 1=Lunes, ... 6=Sábado (sin duplicados, ordenados)"
    )
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    # ── Índices para los chequeos de disponibilidad ──
    __table_args__ = (
        Index("idx_assignment_office_period", "office_id", "year", "month"),
        Index("idx_assignment_doctor_period", "doctor_id", "year", "month"),
    )

    def __repr__(self) -> str:
        return (
            f"<OfficeAssignment {self.office_name} -> {self.doctor_name} "
            f"{self.month:02d}/{self.year} {self.week_days} {self.start_time}-{self.end_time}>"
        )
