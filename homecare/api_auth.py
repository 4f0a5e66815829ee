from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from homecare.api_deps import get_current_principal
from homecare.auth_security import Principal, create_access_token
from homecare.auth_service import (
    authenticate,
    complete_employee_profile,
    complete_patient_profile,
    delete_account,
    get_user_by_id,
    register_user,
)
from homecare.db import get_auth_db, get_db
from homecare.errors import NotFoundError
from homecare.people import EmployeeInput, PatientInput
from homecare.repositories import EmployeeRepository, PatientRepository
from homecare.schemas import EmployeeProfileIn, MeOut, MessageOut, PatientProfileIn, RegisterIn, TokenOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=MessageOut)
def register(payload: RegisterIn, auth: Session = Depends(get_auth_db)) -> MessageOut:
    register_user(auth, payload.username, payload.email, payload.password, payload.role)
    return MessageOut(message="User registered successfully. Please complete your profile.")


@router.post("/login", response_model=TokenOut)
def login(form: OAuth2PasswordRequestForm = Depends(), auth: Session = Depends(get_auth_db)) -> TokenOut:
    u = authenticate(auth, form.username, form.password)
    if not u:
        logger.warning("Failed login for %s", form.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(subject=u.id, extra={"username": u.username, "role": u.role})
    logger.info("User logged in: %s", u.username)
    return TokenOut(access_token=token)


@router.post("/logout", response_model=MessageOut)
def logout(principal: Principal = Depends(get_current_principal)) -> MessageOut:
    # stateless tokens: the client drops its copy
    logger.info("User logged out: %s", principal.username)
    return MessageOut(message="Logout successful")


@router.get("/me", response_model=MeOut)
def me(
    principal: Principal = Depends(get_current_principal),
    auth: Session = Depends(get_auth_db),
    s: Session = Depends(get_db),
) -> MeOut:
    u = get_user_by_id(auth, principal.id)
    if u is None:
        raise NotFoundError("User not found")
    patient = PatientRepository(s).get_by_user_id(u.id)
    employee = EmployeeRepository(s).get_by_user_id(u.id)
    return MeOut(
        id=u.id,
        username=u.username,
        email=u.email,
        role=u.role,
        is_active=u.is_active,
        patient_id=patient.id if patient else None,
        employee_id=employee.id if employee else None,
    )


@router.post("/complete-patient-profile", response_model=MessageOut)
def complete_patient(
    payload: PatientProfileIn,
    principal: Principal = Depends(get_current_principal),
    auth: Session = Depends(get_auth_db),
    s: Session = Depends(get_db),
) -> MessageOut:
    data = PatientInput(
        full_name=payload.full_name,
        address=payload.address,
        date_of_birth=payload.date_of_birth,
        phone=payload.phone,
        health_info=payload.health_info,
    )
    complete_patient_profile(auth, s, principal, data)
    return MessageOut(message="Patient profile created successfully")


@router.post("/complete-employee-profile", response_model=MessageOut)
def complete_employee(
    payload: EmployeeProfileIn,
    principal: Principal = Depends(get_current_principal),
    auth: Session = Depends(get_auth_db),
    s: Session = Depends(get_db),
) -> MessageOut:
    data = EmployeeInput(full_name=payload.full_name, address=payload.address, department=payload.department)
    complete_employee_profile(auth, s, principal, data)
    return MessageOut(message="Employee profile created successfully")


@router.delete("/delete-account", response_model=MessageOut)
def delete_my_account(
    principal: Principal = Depends(get_current_principal),
    auth: Session = Depends(get_auth_db),
    s: Session = Depends(get_db),
) -> MessageOut:
    delete_account(auth, s, principal)
    return MessageOut(message="Account deleted successfully")
