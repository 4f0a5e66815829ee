"""
Appointment lifecycle.

State is a boolean: pending (is_confirmed=False) or confirmed (is_confirmed=True).
- created by an employee -> confirmed, by anyone else -> pending
- updated by the owning patient -> back to pending
- updated by anyone else -> state kept
- confirm: only the assigned employee, idempotent
- delete: notices are built from the stored relations and sent once the row is gone
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime

from .auth_security import Principal
from .errors import NotFoundError, ForbiddenError, OperationFailedError, PersistenceError, ValidationError
from .models import Appointment
from .notifications import NotificationDispatcher
from .repositories import AppointmentRepository, EmployeeRepository, PatientRepository

logger = logging.getLogger(__name__)

SUBJECT_RE = re.compile(r"^[0-9a-zA-ZæøåÆØÅ. \-]{2,20}$")

PAST_DATE_MESSAGE = "Appointment date cannot be in the past"


@dataclass(frozen=True)
class AppointmentInput:
    subject: str
    date: datetime
    patient_id: int
    employee_id: int
    description: str = ""


@dataclass(frozen=True)
class ConfirmResult:
    appointment: Appointment
    already_confirmed: bool
    message: str


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes are compared in local wall-clock time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class AppointmentService:
    def __init__(
        self,
        appointments: AppointmentRepository,
        patients: PatientRepository,
        employees: EmployeeRepository,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.appointments = appointments
        self.patients = patients
        self.employees = employees
        self.dispatcher = dispatcher

    # =========================
    # Queries
    # =========================
    def list(self) -> list[Appointment]:
        return self.appointments.list()

    def get_by_id(self, appointment_id: int) -> Appointment:
        app = self.appointments.get(appointment_id)
        if app is None:
            logger.error("Appointment not found for id %s", appointment_id)
            raise NotFoundError("Appointment not found")
        return app

    def list_by_patient(self, patient_id: int) -> list[Appointment]:
        return self.appointments.list_by_patient(patient_id)

    # =========================
    # Validation
    # =========================
    def _validate(self, data: AppointmentInput, now: datetime | None = None) -> datetime:
        subject = (data.subject or "").strip()
        if not subject:
            raise ValidationError("Subject is required")
        if not SUBJECT_RE.match(subject):
            raise ValidationError("The Subject must be numbers or letters and between 2 to 20 characters.")

        when = to_local_naive(data.date)
        if when < (now or datetime.now()):
            raise ValidationError(PAST_DATE_MESSAGE)
        return when

    def _check_refs(self, data: AppointmentInput) -> None:
        if self.patients.get(data.patient_id) is None:
            raise ValidationError(f"Patient {data.patient_id} does not exist")
        if self.employees.get(data.employee_id) is None:
            raise ValidationError(f"Employee {data.employee_id} does not exist")

    # =========================
    # Transitions
    # =========================
    def create(self, data: AppointmentInput, principal: Principal) -> Appointment:
        when = self._validate(data)
        self._check_refs(data)

        app = Appointment(
            subject=data.subject.strip(),
            description=data.description or "",
            date=when,
            patient_id=data.patient_id,
            employee_id=data.employee_id,
            is_confirmed=principal.is_employee,
        )
        try:
            self.appointments.add(app)
        except PersistenceError:
            logger.warning("Appointment creation failed for subject %r", data.subject)
            raise

        app = self.appointments.reload(app)
        logger.info(
            "Appointment %s created by %s (%s)",
            app.id, principal.username or principal.id, "confirmed" if app.is_confirmed else "pending",
        )
        self.dispatcher.notify_created(app)
        return app

    def update(self, appointment_id: int, data: AppointmentInput, principal: Principal) -> Appointment:
        when = self._validate(data)
        app = self.get_by_id(appointment_id)
        self._check_refs(data)

        # ownership is read from the stored appointment, never from the payload
        was_patient_update = app.patient is not None and app.patient.user_id == principal.id

        app.subject = data.subject.strip()
        app.description = data.description or ""
        app.date = when
        app.patient_id = data.patient_id
        app.employee_id = data.employee_id
        if was_patient_update:
            app.is_confirmed = False

        try:
            self.appointments.save(app)
        except PersistenceError:
            logger.warning("Appointment update failed for id %s", appointment_id)
            raise

        app = self.appointments.reload(app)
        logger.info("Appointment %s updated by %s (patient update: %s)", app.id, principal.id, was_patient_update)
        self.dispatcher.notify_updated(app, was_patient_update)
        return app

    def confirm(self, appointment_id: int, principal: Principal) -> ConfirmResult:
        app = self.get_by_id(appointment_id)

        if app.employee is None or app.employee.user_id != principal.id:
            logger.warning("User %s is not the assigned employee of appointment %s", principal.id, appointment_id)
            raise ForbiddenError("Only the assigned employee can confirm this appointment")

        if app.is_confirmed:
            return ConfirmResult(app, True, "Appointment is already confirmed")

        app.is_confirmed = True
        self.appointments.save(app)
        logger.info("Appointment %s confirmed by %s", app.id, principal.id)

        self.dispatcher.notify_confirmed(app)
        return ConfirmResult(app, False, "Appointment confirmed")

    def delete(self, appointment_id: int) -> None:
        app = self.get_by_id(appointment_id)

        # relations must be read before the row goes away
        notices = self.dispatcher.deletion_notices(app)

        try:
            self.appointments.delete(app)
        except PersistenceError:
            logger.error("Appointment deletion failed for id %s", appointment_id)
            raise OperationFailedError("Appointment deletion failed")
        logger.info("Appointment %s deleted", appointment_id)
        self.dispatcher.send(notices, f"deletion of appointment {appointment_id}")
