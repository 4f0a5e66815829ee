from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from homecare.appointments import AppointmentService
from homecare.auth_models import Role
from homecare.auth_security import Principal, principal_from_token
from homecare.auth_service import get_user_by_id
from homecare.db import get_auth_db, get_db
from homecare.medications import MedicationService
from homecare.notifications import NotificationDispatcher, NotificationService
from homecare.people import EmployeeService, PatientService
from homecare.repositories import (
    AppointmentRepository,
    EmployeeRepository,
    MedicationRepository,
    NotificationRepository,
    PatientRepository,
)

# OAuth2 Bearer (Authorization: Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_current_principal(token: str = Depends(oauth2_scheme), auth: Session = Depends(get_auth_db)) -> Principal:
    # extra protection: strip stray spaces / quotes
    token = token.strip().strip('"').strip("'")

    principal = principal_from_token(token)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    u = get_user_by_id(auth, principal.id)
    if not u or not u.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user",
            headers={"WWW-Authenticate": "Bearer"},
        )
    # the stored role wins over a stale claim
    return Principal(id=u.id, username=u.username, roles=frozenset([u.role]))


def require_roles(*roles: Role):
    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_role(*roles):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return principal

    return checker


# Services, one set per request session

def get_dispatcher(s: Session = Depends(get_db)) -> NotificationDispatcher:
    return NotificationDispatcher(NotificationRepository(s))


def get_appointment_service(
    s: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> AppointmentService:
    return AppointmentService(AppointmentRepository(s), PatientRepository(s), EmployeeRepository(s), dispatcher)


def get_medication_service(
    s: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> MedicationService:
    return MedicationService(MedicationRepository(s), PatientRepository(s), dispatcher)


def get_notification_service(s: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(NotificationRepository(s))


def get_patient_service(s: Session = Depends(get_db)) -> PatientService:
    return PatientService(PatientRepository(s))


def get_employee_service(s: Session = Depends(get_db)) -> EmployeeService:
    return EmployeeService(EmployeeRepository(s))
