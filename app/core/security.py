"""
Utilidades de seguridad: hashing de contraseñas, tokens de verificación
y códigos de recuperación.
"""

import secrets

from passlib.context import CryptContext

# ── Hashing de contraseñas ───────────────────────────
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Genera hash bcrypt de una contraseña."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica una contraseña contra su hash bcrypt."""
    return pwd_context.verify(plain_password, hashed_password)


def generate_verification_token() -> str:
    """Token opaco de un solo uso para el link de verificación de email."""
    return secrets.token_hex(32)


def generate_reset_code() -> str:
    """Código numérico de 6 dígitos para restablecer la contraseña."""
    return f"{secrets.randbelow(10**6):06d}"
