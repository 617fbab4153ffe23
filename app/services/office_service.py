"""
Consultorios (datos de referencia): listado y alta por el administrador.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException
from app.models.office import Office
from app.schemas.office import OfficeCreate

logger = logging.getLogger(__name__)


async def list_offices(db: AsyncSession) -> list[Office]:
    result = await db.execute(select(Office).order_by(Office.name))
    return list(result.scalars().all())


async def create_office(db: AsyncSession, data: OfficeCreate) -> Office:
    existing = await db.execute(select(Office.id).where(Office.name == data.name))
    if existing.scalar_one_or_none():
        raise ConflictException(f"Ya existe un consultorio llamado '{data.name}'")

    office = Office(**data.model_dump())
    db.add(office)
    await db.flush()

    logger.info(f"Consultorio creado: {office!r}")
    return office
