"""
Tests del portal del paciente: edición de datos personales y perfil médico.
"""

from httpx import AsyncClient


def _profile(**overrides) -> dict:
    payload = {
        "firstName": "María",
        "lastName": "González",
        "email": "paciente@test.com",
        "currentPassword": "TestPass123",
    }
    payload.update(overrides)
    return payload


# ── Perfil médico ────────────────────────────────────

async def test_medical_profile_starts_empty(client: AsyncClient, patient_headers):
    response = await client.get("/api/patients/medical-profile", headers=patient_headers)
    assert response.status_code == 200
    profile = response.json()
    assert profile["dni"] == "30111222"
    assert profile["healthInsurance"] == "OSDE"
    assert profile["bloodType"] is None
    assert profile["allergies"] == []
    assert profile["currentMedications"] == []


async def test_update_medical_profile(client: AsyncClient, patient_headers):
    response = await client.patch(
        "/api/patients/medical-profile",
        json={
            "bloodType": "o+",
            "allergies": ["Penicilina", "  "],
            "currentMedications": ["Enalapril 10 mg"],
            "emergencyContactName": "Jorge González",
            "emergencyContactPhone": "+54 11 5555-1111",
        },
        headers=patient_headers,
    )
    assert response.status_code == 200
    profile = response.json()
    assert profile["bloodType"] == "O+"
    assert profile["allergies"] == ["Penicilina"]
    assert profile["chronicConditions"] == []
    assert profile["healthInsurance"] == "OSDE"

    again = await client.get("/api/patients/medical-profile", headers=patient_headers)
    assert again.json()["emergencyContactName"] == "Jorge González"
    assert again.json()["currentMedications"] == ["Enalapril 10 mg"]


async def test_null_list_clears_it(client: AsyncClient, patient_headers):
    await client.patch(
        "/api/patients/medical-profile",
        json={"allergies": ["Látex"]},
        headers=patient_headers,
    )
    response = await client.patch(
        "/api/patients/medical-profile",
        json={"allergies": None},
        headers=patient_headers,
    )
    assert response.status_code == 200
    assert response.json()["allergies"] == []


async def test_invalid_blood_type_is_422(client: AsyncClient, patient_headers):
    response = await client.patch(
        "/api/patients/medical-profile",
        json={"bloodType": "C+"},
        headers=patient_headers,
    )
    assert response.status_code == 422


async def test_medical_profile_is_for_patients(client: AsyncClient, doctor_headers):
    response = await client.get("/api/patients/medical-profile", headers=doctor_headers)
    assert response.status_code == 403


async def test_doctor_sees_updated_medical_profile(
    client: AsyncClient,
    admin_headers,
    patient_headers,
    doctor_headers,
    patient_user,
    doctor,
    assignment,
    monday,
):
    booked = await client.post(
        "/api/appointments",
        json={
            "patientName": "María González",
            "patientDni": patient_user.dni,
            "patientEmail": patient_user.email,
            "doctorId": str(doctor.id),
            "date": monday.isoformat(),
            "time": "08:30",
            "reason": "Control",
        },
        headers=admin_headers,
    )
    assert booked.status_code == 201

    await client.patch(
        "/api/patients/medical-profile",
        json={"allergies": ["Penicilina"], "chronicConditions": ["Hipertensión"]},
        headers=patient_headers,
    )

    response = await client.get(
        f"/api/doctors/patient-info/{booked.json()['id']}", headers=doctor_headers
    )
    assert response.status_code == 200
    patient = response.json()["patient"]
    assert patient["allergies"] == ["Penicilina"]
    assert patient["chronicConditions"] == ["Hipertensión"]


# ── Datos personales ─────────────────────────────────

async def test_update_profile_keeps_email(client: AsyncClient, patient_headers):
    response = await client.patch(
        "/api/patients/profile",
        json=_profile(firstName="María José"),
        headers=patient_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Perfil actualizado correctamente"
    assert body["emailChanged"] is False
    assert body["user"]["fullName"] == "María José González"
    assert body["user"]["emailVerified"] is True


async def test_update_profile_wrong_password_is_401(client: AsyncClient, patient_headers):
    response = await client.patch(
        "/api/patients/profile",
        json=_profile(currentPassword="incorrecta"),
        headers=patient_headers,
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "La contraseña actual es incorrecta"


async def test_update_profile_email_in_use_is_409(
    client: AsyncClient, patient_headers, admin_user
):
    response = await client.patch(
        "/api/patients/profile",
        json=_profile(email=admin_user.email),
        headers=patient_headers,
    )
    assert response.status_code == 409


async def test_email_change_requires_new_verification(
    client: AsyncClient,
    admin_headers,
    patient_headers,
    patient_user,
    doctor,
    assignment,
    monday,
):
    booked = await client.post(
        "/api/appointments",
        json={
            "patientName": "María González",
            "patientDni": patient_user.dni,
            "patientEmail": patient_user.email,
            "doctorId": str(doctor.id),
            "date": monday.isoformat(),
            "time": "08:30",
            "reason": "Control",
        },
        headers=admin_headers,
    )
    assert booked.status_code == 201

    response = await client.patch(
        "/api/patients/profile",
        json=_profile(email="Maria.Nueva@test.com"),
        headers=patient_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Perfil actualizado. Por favor verifica tu nuevo email"
    assert body["emailChanged"] is True
    assert body["user"]["email"] == "maria.nueva@test.com"
    assert body["user"]["emailVerified"] is False
    assert patient_user.verification_token is not None

    mine = await client.get("/api/appointments/my-appointments", headers=patient_headers)
    assert [a["id"] for a in mine.json()] == [booked.json()["id"]]
    assert mine.json()[0]["patientEmail"] == "maria.nueva@test.com"

    login = await client.post(
        "/api/auth/login",
        json={"email": "maria.nueva@test.com", "password": "TestPass123"},
    )
    assert login.status_code == 403
