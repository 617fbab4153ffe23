"""
Modelos SQLAlchemy: exportar todos para que create_all los registre.
"""

from app.models.doctor import Doctor
from app.models.office import Office
from app.models.user import User, UserRole
from app.models.office_assignment import OfficeAssignment
from app.models.appointment import (
    ActorType,
    Appointment,
    AppointmentCancellation,
    AppointmentStatus,
)
from app.models.medical_record import (
    Diagnosis,
    MedicalRecord,
    MedicalStudy,
    Prescription,
    Severity,
)

__all__ = [
    "Doctor",
    "Office",
    "User",
    "UserRole",
    "OfficeAssignment",
    "ActorType",
    "Appointment",
    "AppointmentCancellation",
    "AppointmentStatus",
    "MedicalRecord",
    "Diagnosis",
    "Prescription",
    "MedicalStudy",
    "Severity",
]
