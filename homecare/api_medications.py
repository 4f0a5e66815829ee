from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from homecare.api_deps import get_current_principal, get_medication_service, require_roles
from homecare.auth_models import Role
from homecare.auth_security import Principal
from homecare.medications import MedicationInput, MedicationService
from homecare.schemas import MedicationIn, MedicationOut, MedicationUpdateIn

router = APIRouter(prefix="/api/medications", tags=["Medications"])

staff_only = require_roles(Role.EMPLOYEE, Role.ADMIN)


@router.get("", response_model=list[MedicationOut])
def list_medications(service: MedicationService = Depends(get_medication_service)) -> list[MedicationOut]:
    return [MedicationOut.from_entity(m) for m in service.list_all()]


@router.get("/patient/{patient_id}", response_model=list[MedicationOut])
def list_patient_medications(
    patient_id: int,
    service: MedicationService = Depends(get_medication_service),
    principal: Principal = Depends(get_current_principal),
) -> list[MedicationOut]:
    return [MedicationOut.from_entity(m) for m in service.list_by_patient(patient_id)]


@router.get("/{name}", response_model=MedicationOut)
def get_medication(name: str, service: MedicationService = Depends(get_medication_service)) -> MedicationOut:
    return MedicationOut.from_entity(service.get_by_name(name))


@router.post("", response_model=MedicationOut, status_code=status.HTTP_201_CREATED)
def create_medication(
    payload: MedicationIn,
    service: MedicationService = Depends(get_medication_service),
    principal: Principal = Depends(staff_only),
) -> MedicationOut:
    data = MedicationInput(
        patient_id=payload.patient_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        dosage=payload.dosage,
        indication=payload.indication,
    )
    return MedicationOut.from_entity(service.create(payload.name, data))


@router.put("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def update_medication(
    name: str,
    payload: MedicationUpdateIn,
    service: MedicationService = Depends(get_medication_service),
    principal: Principal = Depends(staff_only),
) -> Response:
    service.update(name, MedicationInput(**payload.model_dump()))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_medication(
    name: str,
    service: MedicationService = Depends(get_medication_service),
    principal: Principal = Depends(staff_only),
) -> Response:
    service.delete(name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
