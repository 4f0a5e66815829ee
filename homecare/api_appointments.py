from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from homecare.api_deps import get_appointment_service, get_current_principal
from homecare.appointments import AppointmentInput, AppointmentService
from homecare.auth_security import Principal
from homecare.errors import NotFoundError
from homecare.schemas import AppointmentIn, AppointmentOut, ConfirmOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])


def _input(payload: AppointmentIn) -> AppointmentInput:
    return AppointmentInput(
        subject=payload.subject,
        description=payload.description,
        date=payload.date,
        patient_id=payload.patient_id,
        employee_id=payload.employee_id,
    )


@router.get("", response_model=list[AppointmentOut])
def list_appointments(service: AppointmentService = Depends(get_appointment_service)) -> list[AppointmentOut]:
    appointments = service.list()
    if not appointments:
        logger.error("Appointment list not found")
        raise NotFoundError("Appointment list not found")
    return [AppointmentOut.from_entity(a) for a in appointments]


@router.get("/patient/{patient_id}", response_model=list[AppointmentOut])
def list_patient_appointments(
    patient_id: int,
    service: AppointmentService = Depends(get_appointment_service),
    principal: Principal = Depends(get_current_principal),
) -> list[AppointmentOut]:
    return [AppointmentOut.from_entity(a) for a in service.list_by_patient(patient_id)]


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(appointment_id: int, service: AppointmentService = Depends(get_appointment_service)) -> AppointmentOut:
    return AppointmentOut.from_entity(service.get_by_id(appointment_id))


@router.post("", response_model=AppointmentOut, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentIn,
    service: AppointmentService = Depends(get_appointment_service),
    principal: Principal = Depends(get_current_principal),
) -> AppointmentOut:
    return AppointmentOut.from_entity(service.create(_input(payload), principal))


@router.put("/{appointment_id}", response_model=AppointmentOut)
def update_appointment(
    appointment_id: int,
    payload: AppointmentIn,
    service: AppointmentService = Depends(get_appointment_service),
    principal: Principal = Depends(get_current_principal),
) -> AppointmentOut:
    return AppointmentOut.from_entity(service.update(appointment_id, _input(payload), principal))


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    service.delete(appointment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{appointment_id}/confirm", response_model=ConfirmOut)
def confirm_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
    principal: Principal = Depends(get_current_principal),
) -> ConfirmOut:
    result = service.confirm(appointment_id, principal)
    return ConfirmOut(
        message=result.message,
        already_confirmed=result.already_confirmed,
        appointment=AppointmentOut.from_entity(result.appointment),
    )
