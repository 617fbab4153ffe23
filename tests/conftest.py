"""
Fixtures compartidas para Pytest.
Configura base de datos de test y clientes HTTP.
"""

import os

# La configuración se lee al importar la app: definir el entorno antes.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["SMTP_HOST"] = ""

import datetime as dt  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from app.auth.jwt import create_access_token  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.doctor import Doctor  # noqa: E402
from app.models.office import Office  # noqa: E402
from app.models.office_assignment import OfficeAssignment  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402

# ── Engine de test (SQLite async) ────────────────────
TEST_DATABASE_URL = os.environ["DATABASE_URL"]

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

TEST_PASSWORD = "TestPass123"


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.role.value)
    return {"Authorization": f"Bearer {token}"}


def first_weekday(year: int, month: int, weekday: int) -> dt.date:
    """Primer día del mes con ese día de la semana (0=Domingo)."""
    day = dt.date(year, month, 1)
    while day.isoweekday() % 7 != weekday:
        day += dt.timedelta(days=1)
    return day


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """Crea y destruye las tablas para cada test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provee una sesión de DB de test."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP de test que usa la DB de test."""

    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Datos de referencia ──────────────────────────────

@pytest_asyncio.fixture
async def doctor(db_session: AsyncSession) -> Doctor:
    doctor = Doctor(
        name="Dr. Ezequiel Mermet",
        first_name="Ezequiel",
        last_name="Mermet",
        specialty="Cardiología",
        license_number="MN-12345",
        available_slots=["09:00", "10:00"],
    )
    db_session.add(doctor)
    await db_session.commit()
    return doctor


@pytest_asyncio.fixture
async def other_doctor(db_session: AsyncSession) -> Doctor:
    doctor = Doctor(
        name="Dra. Aldana Ponce",
        first_name="Aldana",
        last_name="Ponce",
        specialty="Dermatología",
        license_number="MN-67890",
        available_slots=[],
    )
    db_session.add(doctor)
    await db_session.commit()
    return doctor


@pytest_asyncio.fixture
async def office(db_session: AsyncSession) -> Office:
    office = Office(
        name="Consultorio A",
        specialty="Cardiología",
        capacity=1,
        equipment=["Camilla", "Electrocardiograma"],
    )
    db_session.add(office)
    await db_session.commit()
    return office


@pytest_asyncio.fixture
async def other_office(db_session: AsyncSession) -> Office:
    office = Office(
        name="Consultorio D",
        specialty="Dermatología",
        capacity=1,
        equipment=["Dermatoscopio"],
    )
    db_session.add(office)
    await db_session.commit()
    return office


# ── Usuarios ─────────────────────────────────────────

@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    user = User(
        email="admin@test.com",
        hashed_password=hash_password(TEST_PASSWORD),
        role=UserRole.ADMIN,
        first_name="Admin",
        last_name="Test",
        email_verified=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def patient_user(db_session: AsyncSession) -> User:
    user = User(
        email="paciente@test.com",
        hashed_password=hash_password(TEST_PASSWORD),
        role=UserRole.PATIENT,
        first_name="María",
        last_name="González",
        phone="+54 11 5555-0000",
        dni="30111222",
        address="Av. Siempre Viva 742",
        date_of_birth="1990-04-12",
        health_insurance="OSDE",
        email_verified=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def doctor_user(db_session: AsyncSession, doctor: Doctor) -> User:
    user = User(
        email="ezequiel.mermet@clinica.com",
        hashed_password=hash_password(TEST_PASSWORD),
        role=UserRole.DOCTOR,
        first_name=doctor.first_name,
        last_name=doctor.last_name,
        doctor_id=doctor.id,
        email_verified=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def other_doctor_user(db_session: AsyncSession, other_doctor: Doctor) -> User:
    user = User(
        email="aldana.ponce@clinica.com",
        hashed_password=hash_password(TEST_PASSWORD),
        role=UserRole.DOCTOR,
        first_name=other_doctor.first_name,
        last_name=other_doctor.last_name,
        doctor_id=other_doctor.id,
        email_verified=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture
def patient_headers(patient_user: User) -> dict[str, str]:
    return auth_headers(patient_user)


@pytest.fixture
def doctor_headers(doctor_user: User) -> dict[str, str]:
    return auth_headers(doctor_user)


@pytest.fixture
def other_doctor_headers(other_doctor_user: User) -> dict[str, str]:
    return auth_headers(other_doctor_user)


# ── Agenda ───────────────────────────────────────────

@pytest.fixture
def booking_month() -> tuple[int, int]:
    """Noviembre del año próximo: siempre en el futuro."""
    return dt.date.today().year + 1, 11


@pytest_asyncio.fixture
async def assignment(
    db_session: AsyncSession,
    doctor: Doctor,
    office: Office,
    booking_month: tuple[int, int],
) -> OfficeAssignment:
    """Lunes, miércoles y viernes de 08:00 a 10:00."""
    year, month = booking_month
    assignment = OfficeAssignment(
        office_id=office.id,
        office_name=office.name,
        doctor_id=doctor.id,
        doctor_name=doctor.name,
        month=month,
        year=year,
        week_days=[1, 3, 5],
        start_time="08:00",
        end_time="10:00",
    )
    db_session.add(assignment)
    await db_session.commit()
    return assignment


@pytest.fixture
def monday(booking_month: tuple[int, int]) -> dt.date:
    """Primer lunes del mes de reservas."""
    year, month = booking_month
    return first_weekday(year, month, 1)
