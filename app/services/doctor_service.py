"""
Médicos: listados públicos del directorio.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.doctor import Doctor


async def list_doctors(db: AsyncSession) -> list[Doctor]:
    result = await db.execute(select(Doctor).order_by(Doctor.specialty, Doctor.last_name))
    return list(result.scalars().all())


async def list_by_specialty(db: AsyncSession, specialty: str) -> list[Doctor]:
    """Búsqueda sin distinguir mayúsculas."""
    result = await db.execute(
        select(Doctor)
        .where(func.lower(Doctor.specialty) == specialty.lower())
        .order_by(Doctor.last_name)
    )
    return list(result.scalars().all())
