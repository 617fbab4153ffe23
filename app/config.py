"""
Configuración central de la aplicación.
Usa Pydantic BaseSettings para validar variables de entorno.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ──────────────────────────────────────────
    APP_NAME: str = "Consultorios Médicos"
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_V1_PREFIX: str = "/api"

    # ── Database ─────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./consultorios.db"

    # ── JWT ──────────────────────────────────────────
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ── CORS ─────────────────────────────────────────
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:8000"]

    # ── Celery ───────────────────────────────────────
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"
    CELERY_TASK_ALWAYS_EAGER: bool = False

    # ── Email (SMTP) ─────────────────────────────────
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: str = "Consultorios Médicos <no-reply@consultorios.local>"
    FRONTEND_URL: str = "http://localhost:5173"

    # ── Reglas de agenda ─────────────────────────────
    SLOT_DURATION_MINUTES: int = 30
    CANCELLATION_NOTICE_HOURS: int = 24
    REQUIRE_EMAIL_VERIFICATION: bool = True
    PASSWORD_RESET_CODE_MINUTES: int = 15

    # ── Datos iniciales ──────────────────────────────
    SEED_DEMO_DATA: bool = True
    DEFAULT_ADMIN_EMAIL: str = "admin@consultorios.local"
    DEFAULT_ADMIN_PASSWORD: str = "admin12345"
    DEFAULT_DOCTOR_PASSWORD: str = "medico12345"

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST)


@lru_cache
def get_settings() -> Settings:
    return Settings()
