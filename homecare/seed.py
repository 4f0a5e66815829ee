from __future__ import annotations

from sqlalchemy import select

from .auth_models import Role, User
from .auth_security import hash_password
from .db import auth_session, db_session
from .models import Employee, Patient

DEMO_PASSWORD = "demo1234"


def seed_demo() -> None:
    """
    Populate minimal demo data (idempotent):
    - one employee user with its profile
    - one patient user with its profile
    """
    users = [
        ("nurse.demo", "nurse.demo@homecare.local", Role.EMPLOYEE),
        ("patient.demo", "patient.demo@homecare.local", Role.PATIENT),
    ]
    ids: dict[str, str] = {}

    with auth_session() as auth:
        for username, email, role in users:
            u = auth.execute(select(User).where(User.username == username)).scalar_one_or_none()
            if u is None:
                u = User(
                    username=username,
                    email=email,
                    password_hash=hash_password(DEMO_PASSWORD),
                    role=role.value,
                    is_active=True,
                )
                auth.add(u)
                auth.flush()
            ids[username] = u.id

    with db_session() as s:
        employee_uid = ids["nurse.demo"]
        if s.execute(select(Employee).where(Employee.user_id == employee_uid)).scalar_one_or_none() is None:
            s.add(Employee(full_name="Nora Nilsen", address="Storgata 1", department="Home Nursing", user_id=employee_uid))

        patient_uid = ids["patient.demo"]
        if s.execute(select(Patient).where(Patient.user_id == patient_uid)).scalar_one_or_none() is None:
            s.add(
                Patient(
                    full_name="Per Hansen",
                    address="Kirkeveien 12",
                    phone="98765432",
                    health_info="Type 2 diabetes",
                    user_id=patient_uid,
                )
            )
