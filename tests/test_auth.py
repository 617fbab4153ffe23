"""
Tests de autenticación: registro, verificación de email, login por portal,
recuperación de cuenta y cambio de contraseña.
"""

from datetime import timedelta

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models.doctor import Doctor
from app.models.user import User
from app.tasks import email_tasks

PATIENT = {
    "dni": "35123456",
    "email": "Laura.Diaz@Test.com",
    "password": "Segura123",
    "firstName": "Laura",
    "lastName": "Díaz",
    "phone": "+54 11 4444-1111",
    "address": "Calle Falsa 123",
    "dateOfBirth": "1988-02-20",
    "healthInsurance": "Swiss Medical",
}

DOCTOR = {
    "matricula": "1004563",
    "email": "pablo.ruiz@clinica.com",
    "password": "Segura123",
    "firstName": "Pablo",
    "lastName": "Ruiz",
    "phone": "+54 11 4444-2222",
    "specialty": "Pediatría",
}


async def _verification_token(db: AsyncSession, email: str) -> str:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one().verification_token


async def test_patient_registration_and_verification(
    client: AsyncClient, db_session: AsyncSession
):
    response = await client.post("/api/auth/register/patient", json=PATIENT)
    assert response.status_code == 201
    user = response.json()["user"]
    assert user["email"] == "laura.diaz@test.com"
    assert user["role"] == "patient"
    assert user["emailVerified"] is False
    assert "hashedPassword" not in user

    login = {"email": "laura.diaz@test.com", "password": "Segura123"}
    blocked = await client.post("/api/auth/login", json=login)
    assert blocked.status_code == 403
    assert "verifica tu email" in blocked.json()["detail"]

    token = await _verification_token(db_session, "laura.diaz@test.com")
    verified = await client.get(f"/api/auth/verify-email/{token}")
    assert verified.status_code == 200

    reused = await client.get(f"/api/auth/verify-email/{token}")
    assert reused.status_code == 404

    response = await client.post("/api/auth/login", json=login)
    assert response.status_code == 200
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["user"]["emailVerified"] is True

    me = await client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {body['accessToken']}"}
    )
    assert me.status_code == 200
    assert me.json()["fullName"] == "Laura Díaz"
    assert me.json()["lastLogin"] is not None


async def test_duplicate_dni_is_409(client: AsyncClient, patient_user):
    response = await client.post(
        "/api/auth/register/patient", json={**PATIENT, "dni": patient_user.dni}
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "El DNI ya está registrado"


async def test_duplicate_email_is_409(client: AsyncClient, patient_user):
    response = await client.post(
        "/api/auth/register/patient", json={**PATIENT, "email": "PACIENTE@test.com"}
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "El email ya está registrado"


async def test_short_password_is_422(client: AsyncClient):
    response = await client.post(
        "/api/auth/register/patient", json={**PATIENT, "password": "corta"}
    )
    assert response.status_code == 422


async def test_doctor_registration_creates_doctor(
    client: AsyncClient, db_session: AsyncSession
):
    response = await client.post("/api/auth/register/doctor", json=DOCTOR)
    assert response.status_code == 201
    user = response.json()["user"]
    assert user["role"] == "doctor"
    assert user["doctorId"] is not None

    result = await db_session.execute(
        select(Doctor).where(Doctor.license_number == "1004563")
    )
    doctor = result.scalar_one()
    assert doctor.name == "Dr. Pablo Ruiz"
    assert str(doctor.id) == user["doctorId"]


async def test_doctor_license_must_be_valid(client: AsyncClient):
    response = await client.post(
        "/api/auth/register/doctor", json={**DOCTOR, "matricula": "2004561"}
    )
    assert response.status_code == 422


async def test_duplicate_license_is_409(client: AsyncClient):
    await client.post("/api/auth/register/doctor", json=DOCTOR)
    response = await client.post(
        "/api/auth/register/doctor", json={**DOCTOR, "email": "otro@clinica.com"}
    )
    assert response.status_code == 409


async def test_login_wrong_password(client: AsyncClient, patient_user):
    response = await client.post(
        "/api/auth/login", json={"email": patient_user.email, "password": "incorrecta"}
    )
    assert response.status_code == 401


async def test_login_unknown_email(client: AsyncClient):
    response = await client.post(
        "/api/auth/login", json={"email": "nadie@test.com", "password": "TestPass123"}
    )
    assert response.status_code == 401


async def test_login_wrong_portal(client: AsyncClient, patient_user):
    response = await client.post(
        "/api/auth/login",
        json={"email": patient_user.email, "password": "TestPass123", "expectedRole": "doctor"},
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Esta cuenta no es de médico"


async def test_login_right_portal(client: AsyncClient, doctor_user):
    response = await client.post(
        "/api/auth/login",
        json={"email": doctor_user.email, "password": "TestPass123", "expectedRole": "doctor"},
    )
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "doctor"


async def test_resend_verification(client: AsyncClient, db_session: AsyncSession):
    await client.post("/api/auth/register/patient", json=PATIENT)
    first = await _verification_token(db_session, "laura.diaz@test.com")

    response = await client.post(
        "/api/auth/resend-verification", json={"email": "laura.diaz@test.com"}
    )
    assert response.status_code == 200
    assert await _verification_token(db_session, "laura.diaz@test.com") != first


async def test_resend_verification_already_verified(client: AsyncClient, patient_user):
    response = await client.post(
        "/api/auth/resend-verification", json={"email": patient_user.email}
    )
    assert response.status_code == 400


async def test_resend_verification_unknown(client: AsyncClient):
    response = await client.post(
        "/api/auth/resend-verification", json={"email": "nadie@test.com"}
    )
    assert response.status_code == 404


async def test_change_password(client: AsyncClient, patient_user, patient_headers):
    wrong = await client.put(
        "/api/auth/change-password",
        json={"currentPassword": "incorrecta", "newPassword": "NuevaClave1"},
        headers=patient_headers,
    )
    assert wrong.status_code == 401

    response = await client.put(
        "/api/auth/change-password",
        json={"currentPassword": "TestPass123", "newPassword": "NuevaClave1"},
        headers=patient_headers,
    )
    assert response.status_code == 200

    login = await client.post(
        "/api/auth/login", json={"email": "paciente@test.com", "password": "NuevaClave1"}
    )
    assert login.status_code == 200


# ── Recuperación de cuenta ───────────────────────────

def _record_delay(monkeypatch, task) -> list:
    queued = []
    monkeypatch.setattr(task, "delay", lambda *args: queued.append(args))
    return queued


async def test_password_reset_flow(
    client: AsyncClient, db_session: AsyncSession, patient_user, monkeypatch
):
    queued = _record_delay(monkeypatch, email_tasks.send_password_reset_task)

    response = await client.post(
        "/api/auth/forgot-password", json={"email": "PACIENTE@test.com"}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Si el email existe, recibirás un código de recuperación"

    code = patient_user.password_reset_code
    assert len(code) == 6 and code.isdigit()

    await db_session.commit()
    assert queued == [("paciente@test.com", "María", code)]

    wrong = await client.post(
        "/api/auth/reset-password",
        json={
            "email": "paciente@test.com",
            "code": "000000" if code != "000000" else "111111",
            "newPassword": "NuevaClave1",
        },
    )
    assert wrong.status_code == 400
    assert wrong.json()["detail"] == "Código de recuperación incorrecto"

    reset = {"email": "paciente@test.com", "code": code, "newPassword": "NuevaClave1"}
    response = await client.post("/api/auth/reset-password", json=reset)
    assert response.status_code == 200
    assert response.json()["message"] == "Contraseña restablecida correctamente"

    login = await client.post(
        "/api/auth/login", json={"email": "paciente@test.com", "password": "NuevaClave1"}
    )
    assert login.status_code == 200

    reused = await client.post("/api/auth/reset-password", json=reset)
    assert reused.status_code == 400


async def test_expired_reset_code(client: AsyncClient, patient_user):
    await client.post("/api/auth/forgot-password", json={"email": patient_user.email})
    patient_user.password_reset_expires_at = utcnow() - timedelta(minutes=1)

    response = await client.post(
        "/api/auth/reset-password",
        json={
            "email": patient_user.email,
            "code": patient_user.password_reset_code,
            "newPassword": "NuevaClave1",
        },
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "El código de recuperación ha expirado"


async def test_forgot_password_unknown_email_looks_the_same(
    client: AsyncClient, db_session: AsyncSession, monkeypatch
):
    queued = _record_delay(monkeypatch, email_tasks.send_password_reset_task)

    response = await client.post("/api/auth/forgot-password", json={"email": "nadie@test.com"})
    assert response.status_code == 200
    assert response.json()["message"] == "Si el email existe, recibirás un código de recuperación"

    await db_session.commit()
    assert queued == []


async def test_reset_password_unknown_email_is_404(client: AsyncClient):
    response = await client.post(
        "/api/auth/reset-password",
        json={"email": "nadie@test.com", "code": "123456", "newPassword": "NuevaClave1"},
    )
    assert response.status_code == 404


async def test_reset_code_must_have_six_digits(client: AsyncClient, patient_user):
    response = await client.post(
        "/api/auth/reset-password",
        json={"email": patient_user.email, "code": "123", "newPassword": "NuevaClave1"},
    )
    assert response.status_code == 422


async def test_recover_username_by_dni(
    client: AsyncClient, db_session: AsyncSession, patient_user, monkeypatch
):
    queued = _record_delay(monkeypatch, email_tasks.send_username_recovery_task)

    known = await client.post("/api/auth/recover-username", json={"dni": "30111222"})
    unknown = await client.post("/api/auth/recover-username", json={"dni": "99999999"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()

    await db_session.commit()
    assert queued == [("paciente@test.com", "María")]


async def test_recover_doctor_username_by_license(
    client: AsyncClient, db_session: AsyncSession, doctor_user, monkeypatch
):
    queued = _record_delay(monkeypatch, email_tasks.send_username_recovery_task)

    response = await client.post(
        "/api/auth/recover-username-doctor", json={"matricula": "MN-12345"}
    )
    assert response.status_code == 200
    assert response.json()["message"].startswith("Si tu matrícula está registrada")

    await db_session.commit()
    assert queued == [("ezequiel.mermet@clinica.com", "Ezequiel")]


async def test_invalid_token_is_401(client: AsyncClient):
    response = await client.get(
        "/api/auth/me", headers={"Authorization": "Bearer no-es-un-jwt"}
    )
    assert response.status_code == 401


async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
