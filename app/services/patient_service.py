"""
Perfil médico del paciente: grupo sanguíneo, alergias, enfermedades
crónicas, medicación actual, obra social y contacto de emergencia.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.schemas.user import MedicalProfileUpdate

logger = logging.getLogger(__name__)

LIST_FIELDS = ("allergies", "chronic_conditions", "current_medications")


async def update_medical_profile(
    db: AsyncSession, user: User, data: MedicalProfileUpdate
) -> User:
    """Actualiza solo los campos enviados. Una lista en null queda vacía."""
    update_fields = data.model_dump(exclude_unset=True)

    for field, value in update_fields.items():
        if field in LIST_FIELDS:
            value = [item.strip() for item in value or [] if item.strip()]
        setattr(user, field, value)

    await db.flush()
    logger.info(f"Perfil médico actualizado para user_id={user.id}")
    return user
