"""
Endpoints de asignaciones de consultorio (solo administrador para escribir).
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, require_role
from app.core.exceptions import ConflictException, NotFoundException
from app.database import get_db
from app.models.user import User, UserRole
from app.schemas.office_assignment import (
    OfficeAssignmentCreate,
    OfficeAssignmentResponse,
)
from app.services import office_assignment_service
from app.services.scheduling import SchedulingError

router = APIRouter()


@router.get("", response_model=list[OfficeAssignmentResponse])
async def list_assignments(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await office_assignment_service.list_assignments(db)


@router.post("", response_model=OfficeAssignmentResponse, status_code=201)
async def create_assignment(
    data: OfficeAssignmentCreate,
    user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Asigna un consultorio a un médico para ciertos días de un mes.
    409 si choca con otra asignación del consultorio o del médico.
    """
    result = await office_assignment_service.create_assignment(db, data)
    if isinstance(result, SchedulingError):
        raise ConflictException(result.message)
    return result


@router.patch("/{assignment_id}", response_model=OfficeAssignmentResponse)
async def update_assignment(
    assignment_id: UUID,
    data: OfficeAssignmentCreate,
    user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    result = await office_assignment_service.update_assignment(db, assignment_id, data)
    if result is None:
        raise NotFoundException(detail="Asignación no encontrada")
    if isinstance(result, SchedulingError):
        raise ConflictException(result.message)
    return result


@router.delete("/{assignment_id}", status_code=204)
async def delete_assignment(
    assignment_id: UUID,
    user: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Los turnos ya reservados dentro de la asignación se conservan."""
    if not await office_assignment_service.delete_assignment(db, assignment_id):
        raise NotFoundException(detail="Asignación no encontrada")
    return Response(status_code=204)
