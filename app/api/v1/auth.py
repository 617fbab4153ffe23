"""
Endpoints de autenticación: registro de pacientes y médicos, verificación
de email, login, recuperación de cuenta y cambio de contraseña.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.auth import (
    ChangePasswordRequest,
    DoctorRegisterRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PatientRegisterRequest,
    RecoverDoctorUsernameRequest,
    RecoverUsernameRequest,
    RegisterResponse,
    ResendVerificationRequest,
    ResetPasswordRequest,
)
from app.schemas.user import UserResponse
from app.services import auth_service

router = APIRouter()


@router.post("/register/patient", response_model=RegisterResponse, status_code=201)
async def register_patient(
    data: PatientRegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Registra un paciente. La cuenta queda sin verificar hasta que se
    abre el link enviado por email.
    """
    user = await auth_service.register_patient(db, data)
    return RegisterResponse(
        message="Registro exitoso. Revisa tu email para verificar tu cuenta.",
        user=UserResponse.model_validate(user),
    )


@router.post("/register/doctor", response_model=RegisterResponse, status_code=201)
async def register_doctor(
    data: DoctorRegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Registra un médico y su cuenta de acceso a partir de la matrícula."""
    user = await auth_service.register_doctor(db, data)
    return RegisterResponse(
        message="Registro exitoso. Revisa tu email para verificar tu cuenta.",
        user=UserResponse.model_validate(user),
    )


@router.get("/verify-email/{token}", response_model=MessageResponse)
async def verify_email(
    token: str,
    db: AsyncSession = Depends(get_db),
):
    await auth_service.verify_email(db, token)
    return MessageResponse(message="Email verificado correctamente. Ya puedes iniciar sesión.")


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(
    data: ResendVerificationRequest,
    db: AsyncSession = Depends(get_db),
):
    await auth_service.resend_verification(db, str(data.email))
    return MessageResponse(message="Te enviamos un nuevo link de verificación")


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Autentica un usuario con email y contraseña.
    `expectedRole` restringe el login al portal correspondiente.
    """
    return await auth_service.login(db, data)


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    """Datos del usuario autenticado."""
    return user


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.change_password(
        db, user, data.current_password, data.new_password
    )
    return MessageResponse(message="Contraseña actualizada correctamente")


# ── Recuperación de cuenta ──────────────────────────
# Las respuestas no revelan si el email, DNI o matrícula existen.

@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
):
    """Envía un código de recuperación de 6 dígitos al email de la cuenta."""
    await auth_service.request_password_reset(db, str(data.email))
    return MessageResponse(message="Si el email existe, recibirás un código de recuperación")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
):
    await auth_service.reset_password(db, str(data.email), data.code, data.new_password)
    return MessageResponse(message="Contraseña restablecida correctamente")


@router.post("/recover-username", response_model=MessageResponse)
async def recover_username(
    data: RecoverUsernameRequest,
    db: AsyncSession = Depends(get_db),
):
    """Recuerda por email el usuario de un paciente a partir de su DNI."""
    await auth_service.recover_patient_username(db, data.dni)
    return MessageResponse(
        message="Si tu DNI está registrado, recibirás un email con tu dirección de correo electrónico."
    )


@router.post("/recover-username-doctor", response_model=MessageResponse)
async def recover_username_doctor(
    data: RecoverDoctorUsernameRequest,
    db: AsyncSession = Depends(get_db),
):
    await auth_service.recover_doctor_username(db, data.license_number)
    return MessageResponse(
        message="Si tu matrícula está registrada, recibirás un email con tu dirección de correo electrónico."
    )
