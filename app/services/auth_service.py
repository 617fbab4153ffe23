"""
Servicio de autenticación: registro de pacientes y médicos, verificación
de email, login, recuperación de cuenta y edición del perfil.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import create_access_token
from app.config import get_settings
from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    CredentialsException,
    ForbiddenException,
    NotFoundException,
)
from app.core.security import (
    generate_reset_code,
    generate_verification_token,
    hash_password,
    verify_password,
)
from app.database import utcnow
from app.models.appointment import Appointment
from app.models.doctor import Doctor
from app.models.medical_record import Diagnosis, MedicalRecord, MedicalStudy, Prescription
from app.models.user import User, UserRole
from app.schemas.auth import (
    DoctorRegisterRequest,
    LoginRequest,
    LoginResponse,
    PatientRegisterRequest,
)
from app.schemas.user import ProfileUpdate, UserResponse
from app.services.notification_service import (
    notify_password_reset,
    notify_username_recovery,
    notify_verification,
)

settings = get_settings()
logger = logging.getLogger(__name__)

WRONG_ROLE_MESSAGES = {
    UserRole.ADMIN: "Esta cuenta no tiene permisos de administrador",
    UserRole.PATIENT: "Esta cuenta no es de paciente",
    UserRole.DOCTOR: "Esta cuenta no es de médico",
}


async def _ensure_email_available(db: AsyncSession, email: str) -> None:
    result = await db.execute(select(User.id).where(User.email == email))
    if result.scalar_one_or_none():
        raise ConflictException("El email ya está registrado")


async def register_patient(db: AsyncSession, data: PatientRegisterRequest) -> User:
    """Crea la cuenta de paciente sin verificar y envía el link de verificación."""
    email = str(data.email).lower()

    existing_dni = await db.execute(select(User.id).where(User.dni == data.dni))
    if existing_dni.scalar_one_or_none():
        raise ConflictException("El DNI ya está registrado")
    await _ensure_email_available(db, email)

    user = User(
        email=email,
        hashed_password=hash_password(data.password),
        role=UserRole.PATIENT,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        dni=data.dni,
        address=data.address,
        date_of_birth=data.date_of_birth,
        health_insurance=data.health_insurance,
        email_verified=False,
        verification_token=generate_verification_token(),
    )
    db.add(user)
    await db.flush()

    logger.info(f"Paciente registrado: {user.email}")
    notify_verification(db, user.email, user.first_name, user.verification_token)
    return user


async def register_doctor(db: AsyncSession, data: DoctorRegisterRequest) -> User:
    """Crea el registro profesional del médico y su cuenta de acceso."""
    email = str(data.email).lower()

    existing_license = await db.execute(
        select(Doctor.id).where(Doctor.license_number == data.license_number)
    )
    if existing_license.scalar_one_or_none():
        raise ConflictException("La matrícula ya está registrada")
    await _ensure_email_available(db, email)

    doctor = Doctor(
        name=f"Dr. {data.first_name} {data.last_name}",
        first_name=data.first_name,
        last_name=data.last_name,
        specialty=data.specialty,
        license_number=data.license_number,
        available_slots=[],
    )
    db.add(doctor)
    await db.flush()

    user = User(
        email=email,
        hashed_password=hash_password(data.password),
        role=UserRole.DOCTOR,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        doctor_id=doctor.id,
        email_verified=False,
        verification_token=generate_verification_token(),
    )
    db.add(user)
    await db.flush()

    logger.info(f"Médico registrado: {doctor.name} ({doctor.specialty})")
    notify_verification(db, user.email, user.first_name, user.verification_token)
    return user


async def verify_email(db: AsyncSession, token: str) -> User:
    """Marca el email como verificado. El token es de un solo uso."""
    result = await db.execute(
        select(User).where(User.verification_token == token)
    )
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundException(detail="El enlace de verificación no es válido o ha expirado")

    user.email_verified = True
    user.verification_token = None
    await db.flush()

    logger.info(f"Email verificado: {user.email}")
    return user


async def resend_verification(db: AsyncSession, email: str) -> None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundException(detail="Usuario no encontrado")
    if user.email_verified:
        raise BadRequestException("El email ya está verificado")

    user.verification_token = generate_verification_token()
    await db.flush()
    notify_verification(db, user.email, user.first_name, user.verification_token)


async def login(db: AsyncSession, data: LoginRequest) -> LoginResponse:
    """
    Autentica un usuario con email y contraseña.
    Si se indica expected_role, la cuenta debe tener ese rol (login por portal).
    """
    result = await db.execute(
        select(User).where(User.email == str(data.email).lower(), User.is_active.is_(True))
    )
    user = result.scalar_one_or_none()

    if not user:
        logger.warning(f"Login fallido: usuario no encontrado para email={data.email}")
        raise CredentialsException("Email o contraseña incorrectos")

    if not verify_password(data.password, user.hashed_password):
        logger.warning(f"Login fallido: contraseña incorrecta para user_id={user.id}")
        raise CredentialsException("Email o contraseña incorrectos")

    if (
        settings.REQUIRE_EMAIL_VERIFICATION
        and user.role == UserRole.PATIENT
        and not user.email_verified
    ):
        raise ForbiddenException("Por favor verifica tu email antes de iniciar sesión")

    if data.expected_role and user.role != data.expected_role:
        raise ForbiddenException(WRONG_ROLE_MESSAGES[data.expected_role])

    user.last_login = utcnow()
    await db.flush()

    access_token = create_access_token(user.id, user.role.value)
    return LoginResponse(
        access_token=access_token,
        user=UserResponse.model_validate(user),
    )


async def change_password(
    db: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
) -> None:
    """Cambia la contraseña del usuario autenticado."""
    if not verify_password(current_password, user.hashed_password):
        raise CredentialsException("La contraseña actual es incorrecta")

    user.hashed_password = hash_password(new_password)
    await db.flush()
    logger.info(f"Contraseña actualizada para user_id={user.id}")


# ── Recuperación de cuenta ──────────────────────────

def _is_expired(expires_at: datetime) -> bool:
    # SQLite devuelve los datetimes sin zona horaria
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at < utcnow()


async def request_password_reset(db: AsyncSession, email: str) -> None:
    """
    Genera un código de 6 dígitos con vencimiento y lo envía por email.
    Un email desconocido no produce error para no revelar qué cuentas existen.
    """
    result = await db.execute(
        select(User).where(User.email == email.lower(), User.is_active.is_(True))
    )
    user = result.scalar_one_or_none()
    if not user:
        logger.info(f"Recuperación de contraseña pedida para email no registrado: {email}")
        return

    user.password_reset_code = generate_reset_code()
    user.password_reset_expires_at = utcnow() + timedelta(
        minutes=settings.PASSWORD_RESET_CODE_MINUTES
    )
    await db.flush()
    notify_password_reset(db, user.email, user.first_name, user.password_reset_code)


async def reset_password(db: AsyncSession, email: str, code: str, new_password: str) -> None:
    """Cambia la contraseña con el código recibido. El código es de un solo uso."""
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundException(detail="Usuario no encontrado")

    if not user.password_reset_code or not secrets.compare_digest(
        user.password_reset_code, code
    ):
        raise BadRequestException("Código de recuperación incorrecto")
    if user.password_reset_expires_at is None or _is_expired(user.password_reset_expires_at):
        raise BadRequestException("El código de recuperación ha expirado")

    user.hashed_password = hash_password(new_password)
    user.password_reset_code = None
    user.password_reset_expires_at = None
    await db.flush()
    logger.info(f"Contraseña restablecida para user_id={user.id}")


async def recover_patient_username(db: AsyncSession, dni: str) -> None:
    """Envía el email de acceso del paciente con ese DNI, si existe."""
    result = await db.execute(
        select(User).where(User.dni == dni, User.role == UserRole.PATIENT)
    )
    user = result.scalar_one_or_none()
    if user:
        notify_username_recovery(db, user.email, user.first_name)


async def recover_doctor_username(db: AsyncSession, license_number: str) -> None:
    """Envía el email de acceso del médico con esa matrícula, si existe."""
    result = await db.execute(
        select(User)
        .join(Doctor, User.doctor_id == Doctor.id)
        .where(Doctor.license_number == license_number, User.role == UserRole.DOCTOR)
    )
    user = result.scalar_one_or_none()
    if user:
        notify_username_recovery(db, user.email, user.first_name)


# ── Perfil ───────────────────────────────────────────

async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> bool:
    """
    Actualiza nombre, apellido y email del paciente. Devuelve True si
    cambió el email: en ese caso la cuenta vuelve a quedar sin verificar
    y los turnos e historia clínica pasan al email nuevo.
    """
    if not verify_password(data.current_password, user.hashed_password):
        raise CredentialsException("La contraseña actual es incorrecta")

    new_email = str(data.email).lower()
    old_email = user.email
    email_changed = new_email != old_email
    if email_changed:
        await _ensure_email_available(db, new_email)

    user.first_name = data.first_name
    user.last_name = data.last_name

    if email_changed:
        user.email = new_email
        user.email_verified = False
        user.verification_token = generate_verification_token()
        for model in (Appointment, MedicalRecord, Diagnosis, Prescription, MedicalStudy):
            await db.execute(
                update(model)
                .where(model.patient_email == old_email)
                .values(patient_email=new_email)
                .execution_options(synchronize_session="fetch")
            )

    await db.flush()

    if email_changed:
        logger.info(f"Email de user_id={user.id} cambiado, pendiente de verificación")
        notify_verification(db, user.email, user.first_name, user.verification_token)
    return email_changed
