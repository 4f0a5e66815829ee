from __future__ import annotations

import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Point both stores at throwaway files before homecare reads its settings
_TMP = Path(tempfile.mkdtemp(prefix="homecare-tests-"))
os.environ["HOMECARE_DATABASE_URL"] = f"sqlite:///{_TMP / 'app.sqlite'}"
os.environ["HOMECARE_AUTH_DATABASE_URL"] = f"sqlite:///{_TMP / 'auth.sqlite'}"
os.environ["JWT_SECRET"] = "test-secret"

from fastapi.testclient import TestClient  # noqa: E402

from homecare.api_main import app  # noqa: E402
from homecare.appointments import AppointmentService  # noqa: E402
from homecare.auth_security import Principal  # noqa: E402
from homecare.db import SessionLocal, drop_db, init_db  # noqa: E402
from homecare.errors import PersistenceError  # noqa: E402
from homecare.models import Employee, Patient  # noqa: E402
from homecare.notifications import NotificationDispatcher  # noqa: E402
from homecare.repositories import (  # noqa: E402
    AppointmentRepository,
    EmployeeRepository,
    NotificationRepository,
    PatientRepository,
)

PASSWORD = "secret123"


def in_days(days: int) -> datetime:
    return (datetime.now() + timedelta(days=days)).replace(microsecond=0)


class FailingWritesAppointmentRepository(AppointmentRepository):
    """Every write rolls back and fails, as a broken store would."""

    def _commit(self, what: str) -> None:
        self.s.rollback()
        raise PersistenceError()


@pytest.fixture(autouse=True)
def fresh_db():
    """Every test starts from empty stores."""
    drop_db()
    init_db()
    yield


# Service level

@pytest.fixture
def session():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def patient(session) -> Patient:
    p = Patient(full_name="Alice Berg", phone="91234567", user_id="user-patient")
    session.add(p)
    session.commit()
    return p


@pytest.fixture
def employee(session) -> Employee:
    e = Employee(full_name="Nils Dahl", department="Home Nursing", user_id="user-employee")
    session.add(e)
    session.commit()
    return e


@pytest.fixture
def other_employee(session) -> Employee:
    e = Employee(full_name="Kari Lund", department="Physiotherapy", user_id="user-other-employee")
    session.add(e)
    session.commit()
    return e


@pytest.fixture
def patient_principal(patient) -> Principal:
    return Principal(id=patient.user_id, username="alice", roles=frozenset(["Patient"]))


@pytest.fixture
def employee_principal(employee) -> Principal:
    return Principal(id=employee.user_id, username="nils", roles=frozenset(["Employee"]))


@pytest.fixture
def notifications(session) -> NotificationRepository:
    return NotificationRepository(session)


@pytest.fixture
def appointment_service(session, notifications) -> AppointmentService:
    return AppointmentService(
        AppointmentRepository(session),
        PatientRepository(session),
        EmployeeRepository(session),
        NotificationDispatcher(notifications),
    )


# API level

@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def register(client: TestClient, username: str, role: str, password: str = PASSWORD):
    return client.post(
        "/api/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": password, "role": role},
    )


def login(client: TestClient, username: str, password: str = PASSWORD):
    return client.post("/api/auth/login", data={"username": username, "password": password})


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def signup(client: TestClient, username: str, role: str, profile: dict | None = None) -> dict:
    """Register, log in and (optionally) complete the profile. Returns the /me payload plus headers."""
    assert register(client, username, role).status_code == 200
    token = login(client, username).json()["access_token"]
    headers = auth_headers(token)

    if profile is not None:
        path = "/api/auth/complete-patient-profile" if role == "Patient" else "/api/auth/complete-employee-profile"
        r = client.post(path, json=profile, headers=headers)
        assert r.status_code == 200, r.text

    me = client.get("/api/auth/me", headers=headers).json()
    return {**me, "token": token, "headers": headers}


@pytest.fixture
def patient_user(client) -> dict:
    return signup(client, "alice", "Patient", {"full_name": "Alice Berg", "phone": "91234567"})


@pytest.fixture
def employee_user(client) -> dict:
    return signup(client, "nils", "Employee", {"full_name": "Nils Dahl", "department": "Home Nursing"})


@pytest.fixture
def other_employee_user(client) -> dict:
    return signup(client, "kari", "Employee", {"full_name": "Kari Lund", "department": "Physiotherapy"})
