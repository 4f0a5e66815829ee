from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from homecare.auth_models import Role, User
from homecare.auth_security import Principal, hash_password, verify_password
from homecare.errors import NotFoundError, PersistenceError, ValidationError
from homecare.models import Employee, Patient
from homecare.people import EmployeeInput, EmployeeService, PatientInput, PatientService
from homecare.repositories import EmployeeRepository, NotificationRepository, PatientRepository

logger = logging.getLogger(__name__)

REGISTRABLE_ROLES = {Role.PATIENT.value, Role.EMPLOYEE.value}


def register_user(auth: Session, username: str, email: str, password: str, role: str) -> User:
    username = (username or "").strip().lower()
    email = (email or "").strip().lower()
    if not username or not password or not email:
        raise ValidationError("Username, email and password are required.")
    if role not in REGISTRABLE_ROLES:
        raise ValidationError("Role must be either 'Patient' or 'Employee'")

    if auth.execute(select(User).where(User.email == email)).scalar_one_or_none():
        logger.warning("Registration refused, email already in use: %s", email)
        raise ValidationError("This email is already in use")
    if auth.execute(select(User).where(User.username == username)).scalar_one_or_none():
        logger.warning("Registration refused, username already in use: %s", username)
        raise ValidationError("This username is already in use")

    u = User(username=username, email=email, password_hash=hash_password(password), role=role, is_active=True)
    auth.add(u)
    auth.commit()
    logger.info("User registered: %s with role %s", username, role)
    return u


def authenticate(auth: Session, username: str, password: str) -> User | None:
    username = (username or "").strip().lower()
    u = auth.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if not u or not u.is_active:
        return None
    if not verify_password(password, u.password_hash):
        return None
    return u


def get_user_by_id(auth: Session, user_id: str) -> User | None:
    return auth.get(User, user_id)


def _require_user(auth: Session, principal: Principal) -> User:
    u = get_user_by_id(auth, principal.id)
    if u is None:
        raise NotFoundError("User not found")
    return u


def complete_patient_profile(auth: Session, s: Session, principal: Principal, data: PatientInput) -> Patient:
    u = _require_user(auth, principal)
    if u.role != Role.PATIENT.value:
        raise ValidationError("User is not a patient")
    return PatientService(PatientRepository(s)).create(u.id, data)


def complete_employee_profile(auth: Session, s: Session, principal: Principal, data: EmployeeInput) -> Employee:
    u = _require_user(auth, principal)
    if u.role != Role.EMPLOYEE.value:
        raise ValidationError("User is not an employee")
    return EmployeeService(EmployeeRepository(s)).create(u.id, data)


def delete_account(auth: Session, s: Session, principal: Principal) -> None:
    """
    Deletes the profile (with its appointments/medications) and the user's
    notifications in one transaction, then the identity record.
    A failure in the first step leaves everything in place.
    """
    u = _require_user(auth, principal)

    profile: Patient | Employee | None = None
    if u.role == Role.PATIENT.value:
        profile = PatientRepository(s).get_by_user_id(u.id)
    elif u.role == Role.EMPLOYEE.value:
        profile = EmployeeRepository(s).get_by_user_id(u.id)

    try:
        if profile is not None:
            s.delete(profile)
        NotificationRepository(s).delete_for_user(u.id)
        s.commit()
    except SQLAlchemyError:
        s.rollback()
        logger.exception("Account deletion failed for %s, nothing removed", u.username)
        raise PersistenceError()

    try:
        auth.delete(u)
        auth.commit()
    except SQLAlchemyError:
        auth.rollback()
        # retrying delete_account finishes the job
        logger.exception("Profile data of %s removed but the identity record was kept", u.username)
        raise PersistenceError()
    logger.info("Account deleted: %s", u.username)
