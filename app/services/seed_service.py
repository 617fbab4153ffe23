"""
Datos iniciales: médicos, consultorios, cuenta de administrador y una
cuenta de acceso por cada médico.

Idempotente: si ya hay médicos cargados no hace nada.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.security import hash_password
from app.models.doctor import Doctor
from app.models.office import Office
from app.models.user import User, UserRole

settings = get_settings()
logger = logging.getLogger(__name__)


DOCTORS = [
    {
        "name": "Dr. Ezequiel Mermet",
        "first_name": "Ezequiel",
        "last_name": "Mermet",
        "specialty": "Cardiología",
        "license_number": "MN-12345",
        "available_slots": ["09:00", "10:00", "11:00", "14:00", "15:00", "16:00"],
    },
    {
        "name": "Dr. Valentin Lucero",
        "first_name": "Valentin",
        "last_name": "Lucero",
        "specialty": "Pediatría",
        "license_number": "MN-23456",
        "available_slots": ["08:00", "09:00", "10:00", "11:00", "15:00", "16:00", "17:00"],
    },
    {
        "name": "Dr. Walter Lucero",
        "first_name": "Walter",
        "last_name": "Lucero",
        "specialty": "Neurología",
        "license_number": "MN-34567",
        "available_slots": ["08:30", "09:30", "10:30", "14:00", "15:00", "16:00"],
    },
    {
        "name": "Dr. Leo Zabala",
        "first_name": "Leo",
        "last_name": "Zabala",
        "specialty": "Urología y Ginecología",
        "license_number": "MN-45678",
        "available_slots": ["09:30", "10:30", "11:30", "14:30", "15:30", "16:30"],
    },
    {
        "name": "Dr. Matias Aspilcueta",
        "first_name": "Matias",
        "last_name": "Aspilcueta",
        "specialty": "Traumatología",
        "license_number": "MN-56789",
        "available_slots": ["08:00", "09:00", "10:00", "13:00", "14:00", "15:00"],
    },
    {
        "name": "Dra. Aldana Ponce",
        "first_name": "Aldana",
        "last_name": "Ponce",
        "specialty": "Dermatología",
        "license_number": "MN-67890",
        "available_slots": ["10:00", "11:00", "12:00", "15:00", "16:00", "17:00"],
    },
]

OFFICES = [
    {
        "name": "Consultorio A",
        "specialty": "Cardiología",
        "equipment": [
            "Camilla", "Escritorio", "Computadora", "Electrocardiograma",
            "Esfigmomanómetro", "Estetoscopio", "Desfibrilador", "Monitor cardíaco",
        ],
    },
    {
        "name": "Consultorio B",
        "specialty": "Pediatría",
        "equipment": [
            "Camilla pediátrica", "Escritorio", "Computadora", "Báscula infantil",
            "Tallímetro", "Otoscopio", "Estetoscopio pediátrico", "Termómetro digital",
        ],
    },
    {
        "name": "Consultorio C",
        "specialty": "Neurología",
        "equipment": [
            "Camilla", "Escritorio", "Computadora", "Martillo de reflejos",
            "Oftalmoscopio", "Estetoscopio", "Equipo de electroencefalografía",
        ],
    },
    {
        "name": "Consultorio D",
        "specialty": "Dermatología",
        "equipment": [
            "Camilla", "Escritorio", "Computadora", "Dermatoscopio",
            "Lámpara de Wood", "Crioterapia", "Lupa dermatológica", "Bisturí eléctrico",
        ],
    },
    {
        "name": "Consultorio E",
        "specialty": "Traumatología",
        "equipment": [
            "Camilla ortopédica", "Escritorio", "Computadora", "Negatoscopio",
            "Goniómetro", "Martillo de reflejos", "Inmovilizadores", "Mesa de yesos",
        ],
    },
    {
        "name": "Consultorio F",
        "specialty": "Urología y Ginecología",
        "equipment": [
            "Camilla ginecológica", "Escritorio", "Computadora", "Ecógrafo",
            "Espéculo vaginal", "Colposcopio", "Lámpara de pie",
            "Instrumental quirúrgico menor",
        ],
    },
]


def doctor_email(doctor: Doctor) -> str:
    return f"{doctor.first_name.lower()}.{doctor.last_name.lower()}@clinica.com"


async def seed_demo_data(db: AsyncSession) -> bool:
    """Carga los datos iniciales. Retorna False si ya estaban cargados."""
    count = await db.scalar(select(func.count()).select_from(Doctor))
    if count:
        logger.info(f"Datos iniciales ya presentes ({count} médicos)")
        return False

    doctors = [Doctor(**data) for data in DOCTORS]
    db.add_all(doctors)
    db.add_all(Office(capacity=1, **data) for data in OFFICES)
    await db.flush()

    db.add(User(
        email=settings.DEFAULT_ADMIN_EMAIL,
        hashed_password=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        first_name="Administrador",
        last_name="Consultorios",
        email_verified=True,
    ))

    doctor_password = hash_password(settings.DEFAULT_DOCTOR_PASSWORD)
    for doctor in doctors:
        db.add(User(
            email=doctor_email(doctor),
            hashed_password=doctor_password,
            role=UserRole.DOCTOR,
            first_name=doctor.first_name,
            last_name=doctor.last_name,
            doctor_id=doctor.id,
            email_verified=True,
        ))

    await db.flush()
    logger.info(
        f"Datos iniciales cargados: {len(DOCTORS)} médicos, {len(OFFICES)} consultorios"
    )
    return True
