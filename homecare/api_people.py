"""Patient and employee endpoints (authenticated)."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from homecare.api_deps import get_current_principal, get_employee_service, get_patient_service, require_roles
from homecare.auth_models import Role
from homecare.auth_security import Principal
from homecare.errors import ValidationError
from homecare.people import EmployeeInput, EmployeeService, PatientInput, PatientService
from homecare.schemas import EmployeeIn, EmployeeOut, PatientCreateIn, PatientIn, PatientOut

patients_router = APIRouter(
    prefix="/api/patients", tags=["Patients"], dependencies=[Depends(get_current_principal)]
)
employees_router = APIRouter(
    prefix="/api/employees", tags=["Employees"], dependencies=[Depends(get_current_principal)]
)


def _patient_input(payload: PatientIn) -> PatientInput:
    return PatientInput(
        full_name=payload.full_name,
        address=payload.address,
        date_of_birth=payload.date_of_birth,
        phone=payload.phone,
        health_info=payload.health_info,
    )


# PATIENTS

@patients_router.get("", response_model=list[PatientOut])
def list_patients(service: PatientService = Depends(get_patient_service)) -> list[PatientOut]:
    return [PatientOut.model_validate(p) for p in service.list()]


@patients_router.get("/user/{user_id}", response_model=PatientOut)
def get_patient_by_user(user_id: str, service: PatientService = Depends(get_patient_service)) -> PatientOut:
    return PatientOut.model_validate(service.get_by_user_id(user_id))


@patients_router.get("/{patient_id}", response_model=PatientOut)
def get_patient(patient_id: int, service: PatientService = Depends(get_patient_service)) -> PatientOut:
    return PatientOut.model_validate(service.get(patient_id))


@patients_router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
def create_patient(payload: PatientCreateIn, service: PatientService = Depends(get_patient_service)) -> PatientOut:
    return PatientOut.model_validate(service.create(payload.user_id, _patient_input(payload)))


@patients_router.put("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_patient(
    patient_id: int,
    payload: PatientIn,
    service: PatientService = Depends(get_patient_service),
) -> Response:
    if payload.id != patient_id:
        raise ValidationError("ID mismatch")
    service.update(patient_id, _patient_input(payload))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@patients_router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_patient(patient_id: int, service: PatientService = Depends(get_patient_service)) -> Response:
    service.delete(patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# EMPLOYEES

@employees_router.get("", response_model=list[EmployeeOut])
def list_employees(service: EmployeeService = Depends(get_employee_service)) -> list[EmployeeOut]:
    return [EmployeeOut.model_validate(e) for e in service.list()]


@employees_router.get("/user/{user_id}", response_model=EmployeeOut)
def get_employee_by_user(user_id: str, service: EmployeeService = Depends(get_employee_service)) -> EmployeeOut:
    return EmployeeOut.model_validate(service.get_by_user_id(user_id))


@employees_router.get("/{employee_id}", response_model=EmployeeOut)
def get_employee(employee_id: int, service: EmployeeService = Depends(get_employee_service)) -> EmployeeOut:
    return EmployeeOut.model_validate(service.get(employee_id))


@employees_router.put("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_employee(
    employee_id: int,
    payload: EmployeeIn,
    service: EmployeeService = Depends(get_employee_service),
) -> Response:
    if payload.id != employee_id:
        raise ValidationError("ID mismatch")
    data = EmployeeInput(full_name=payload.full_name, address=payload.address, department=payload.department)
    service.update(employee_id, data)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@employees_router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(
    employee_id: int,
    service: EmployeeService = Depends(get_employee_service),
    principal: Principal = Depends(require_roles(Role.ADMIN)),
) -> Response:
    service.delete(employee_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
