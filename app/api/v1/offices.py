"""
Endpoints de consultorios y consulta de disponibilidad.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, require_role
from app.database import get_db
from app.models.user import User, UserRole
from app.schemas.office import OfficeCreate, OfficeResponse
from app.schemas.office_assignment import (
    OfficeAssignmentResponse,
    OfficeAvailabilityCheck,
    OfficeAvailabilityResponse,
)
from app.services import office_assignment_service, office_service

router = APIRouter()


@router.get("", response_model=list[OfficeResponse])
async def list_offices(
    user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await office_service.list_offices(db)


@router.post("", response_model=OfficeResponse, status_code=201)
async def create_office(
    data: OfficeCreate,
    user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await office_service.create_office(db, data)


@router.post("/check-availability", response_model=OfficeAvailabilityResponse)
async def check_availability(
    data: OfficeAvailabilityCheck,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Indica si el consultorio está libre para el bloque pedido y, si no,
    qué asignaciones del mismo mes lo ocupan.
    """
    result = await office_assignment_service.check_office_availability(
        db,
        office_id=data.office_id,
        month=data.month,
        year=data.year,
        week_days=data.week_days,
        start_time=data.start_time,
        end_time=data.end_time,
    )
    return OfficeAvailabilityResponse(
        available=result.available,
        conflicts=[
            OfficeAssignmentResponse.model_validate(a) for a in result.conflicts
        ],
    )
