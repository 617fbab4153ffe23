"""
Router principal de la API.
Agrupa todos los sub-routers.
"""

from fastapi import APIRouter

from app.api.v1.appointments import router as appointments_router
from app.api.v1.auth import router as auth_router
from app.api.v1.doctors import router as doctors_router
from app.api.v1.office_assignments import router as office_assignments_router
from app.api.v1.offices import router as offices_router
from app.api.v1.patients import router as patients_router
from app.api.v1.records import router as records_router

api_v1_router = APIRouter()

api_v1_router.include_router(
    auth_router,
    prefix="/auth",
    tags=["Autenticación"],
)

api_v1_router.include_router(
    doctors_router,
    prefix="/doctors",
    tags=["Médicos"],
)

api_v1_router.include_router(
    offices_router,
    prefix="/offices",
    tags=["Consultorios"],
)

api_v1_router.include_router(
    office_assignments_router,
    prefix="/office-assignments",
    tags=["Asignaciones de Consultorio"],
)

api_v1_router.include_router(
    appointments_router,
    prefix="/appointments",
    tags=["Citas"],
)

api_v1_router.include_router(
    records_router,
    prefix="/records",
    tags=["Historia Clínica"],
)

api_v1_router.include_router(
    patients_router,
    prefix="/patients",
    tags=["Pacientes"],
)
