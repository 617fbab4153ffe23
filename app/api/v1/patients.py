"""
Endpoints del portal del paciente: datos personales y perfil médico.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_role
from app.database import get_db
from app.models.user import User, UserRole
from app.schemas.user import (
    MedicalProfileUpdate,
    PatientProfile,
    ProfileUpdate,
    ProfileUpdateResponse,
    UserResponse,
)
from app.services import auth_service, patient_service

router = APIRouter()


@router.patch("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    data: ProfileUpdate,
    user: User = Depends(require_role(UserRole.PATIENT)),
    db: AsyncSession = Depends(get_db),
):
    """
    Edita nombre, apellido y email. Requiere la contraseña actual.
    Un email nuevo debe verificarse otra vez.
    """
    email_changed = await auth_service.update_profile(db, user, data)
    message = (
        "Perfil actualizado. Por favor verifica tu nuevo email"
        if email_changed
        else "Perfil actualizado correctamente"
    )
    return ProfileUpdateResponse(
        message=message,
        email_changed=email_changed,
        user=UserResponse.model_validate(user),
    )


@router.get("/medical-profile", response_model=PatientProfile)
async def get_medical_profile(
    user: User = Depends(require_role(UserRole.PATIENT)),
):
    return user


@router.patch("/medical-profile", response_model=PatientProfile)
async def update_medical_profile(
    data: MedicalProfileUpdate,
    user: User = Depends(require_role(UserRole.PATIENT)),
    db: AsyncSession = Depends(get_db),
):
    """Actualiza solo los campos enviados del perfil médico."""
    return await patient_service.update_medical_profile(db, user, data)
