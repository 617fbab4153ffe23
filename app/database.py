"""
Configuración de base de datos con SQLAlchemy 2.0 async.
Cada request corre en una única transacción (commit al final, rollback ante error).
"""

from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict:
    """SQLite no acepta parámetros de pool; PostgreSQL sí."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_size": 20, "max_overflow": 10, "pool_pre_ping": True}


# ── Engine async ─────────────────────────────────────
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    **_engine_options(settings.DATABASE_URL),
)

# ── Session factory ──────────────────────────────────
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def utcnow() -> datetime:
    """Default de columnas de timestamp (evita refrescos lazy en sesiones async)."""
    return datetime.now(timezone.utc)


# ── Base declarativa ─────────────────────────────────
class Base(DeclarativeBase):
    pass


async def create_tables() -> None:
    """Crea las tablas que falten. En PostgreSQL el esquema lo maneja alembic."""
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ── Dependency: sesión de DB ─────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency de FastAPI que provee una sesión de base de datos.
    El chequeo de conflictos y la escritura comparten esta transacción.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
