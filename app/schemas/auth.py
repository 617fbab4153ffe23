"""
Schemas de autenticación: login, registro de pacientes y médicos,
verificación de email, recuperación de cuenta y cambio de contraseña.
"""

from pydantic import EmailStr, Field, field_validator

from app.models.user import UserRole
from app.schemas.base import CamelModel
from app.schemas.user import UserResponse


# ── Login ────────────────────────────────────────────
class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    expected_role: UserRole | None = None


class LoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# ── Registro ─────────────────────────────────────────
class PatientRegisterRequest(CamelModel):
    dni: str = Field(..., min_length=7, max_length=15)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=30)
    address: str = Field(..., min_length=1, max_length=500)
    date_of_birth: str = Field(..., min_length=1, max_length=10)
    health_insurance: str = Field(..., min_length=1, max_length=150)


class DoctorRegisterRequest(CamelModel):
    license_number: str = Field(..., min_length=1, max_length=30, alias="matricula")
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=30)
    specialty: str = Field(..., min_length=1, max_length=100)

    @field_validator("license_number")
    @classmethod
    def doctor_license(cls, v: str) -> str:
        # Las matrículas médicas empiezan en 1 y terminan en 3
        if not v.startswith("1") or not v.endswith("3"):
            raise ValueError("La matrícula no es válida o no pertenece a un médico")
        return v


class RegisterResponse(CamelModel):
    message: str
    user: UserResponse


class ResendVerificationRequest(CamelModel):
    email: EmailStr


class MessageResponse(CamelModel):
    message: str


# ── Cambio de contraseña ────────────────────────────
class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


# ── Recuperación de cuenta ──────────────────────────
class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    email: EmailStr
    code: str = Field(..., pattern=r"^\d{6}$")
    new_password: str = Field(..., min_length=8, max_length=128)


class RecoverUsernameRequest(CamelModel):
    dni: str = Field(..., min_length=7, max_length=15)


class RecoverDoctorUsernameRequest(CamelModel):
    license_number: str = Field(..., min_length=1, max_length=30, alias="matricula")
