from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import FailingWritesAppointmentRepository, in_days
from homecare.appointments import PAST_DATE_MESSAGE, AppointmentInput, AppointmentService
from homecare.auth_security import Principal
from homecare.errors import ForbiddenError, NotFoundError, OperationFailedError, PersistenceError, ValidationError
from homecare.models import NotificationType
from homecare.notifications import NotificationDispatcher
from homecare.repositories import (
    AppointmentRepository,
    EmployeeRepository,
    NotificationRepository,
    PatientRepository,
)


def booking(patient, employee, days: int = 3, subject: str = "Wound care") -> AppointmentInput:
    return AppointmentInput(
        subject=subject,
        description="Change dressing",
        date=in_days(days),
        patient_id=patient.id,
        employee_id=employee.id,
    )


def titles(repo: NotificationRepository, user_id: str) -> list[str]:
    return [n.title for n in repo.list_for_user(user_id)]


class TestCreate:
    def test_patient_created_appointment_is_pending(
        self, appointment_service, patient, employee, patient_principal, notifications
    ):
        app = appointment_service.create(booking(patient, employee), patient_principal)

        assert app.is_confirmed is False
        assert titles(notifications, employee.user_id) == ["New Appointment Request"]
        assert titles(notifications, patient.user_id) == []

    def test_employee_created_appointment_is_confirmed(
        self, appointment_service, patient, employee, employee_principal, notifications
    ):
        app = appointment_service.create(booking(patient, employee), employee_principal)

        assert app.is_confirmed is True
        # the request notice still goes out to the employee
        assert titles(notifications, employee.user_id) == ["New Appointment Request"]

    def test_round_trip_keeps_fields_and_names(self, appointment_service, patient, employee, patient_principal):
        data = booking(patient, employee, days=5)
        created = appointment_service.create(data, patient_principal)

        fetched = appointment_service.get_by_id(created.id)
        assert fetched.subject == "Wound care"
        assert fetched.description == "Change dressing"
        assert fetched.date.date() == data.date.date()
        assert fetched.patient_name == "Alice Berg"
        assert fetched.employee_name == "Nils Dahl"

    def test_notification_carries_appointment_id_and_names(
        self, appointment_service, patient, employee, patient_principal, notifications
    ):
        app = appointment_service.create(booking(patient, employee), patient_principal)

        n = notifications.list_for_user(employee.user_id)[0]
        assert n.related_id == app.id
        assert n.type == NotificationType.APPOINTMENT
        assert "Alice Berg" in n.message
        assert "'Wound care'" in n.message

    def test_past_date_is_rejected(self, appointment_service, patient, employee, patient_principal, notifications):
        data = AppointmentInput(
            subject="Checkup",
            date=datetime.now() - timedelta(days=1),
            patient_id=patient.id,
            employee_id=employee.id,
        )
        with pytest.raises(ValidationError) as exc:
            appointment_service.create(data, patient_principal)

        assert exc.value.message == PAST_DATE_MESSAGE
        assert appointment_service.list() == []
        assert notifications.list() == []

    def test_earlier_today_is_rejected(self, appointment_service, patient, employee, patient_principal):
        data = AppointmentInput(
            subject="Checkup",
            date=datetime.now() - timedelta(hours=1),
            patient_id=patient.id,
            employee_id=employee.id,
        )
        with pytest.raises(ValidationError, match=PAST_DATE_MESSAGE):
            appointment_service.create(data, patient_principal)

    @pytest.mark.parametrize("subject", ["", "A", "x" * 21, "Bad<subject>"])
    def test_invalid_subject_is_rejected(self, appointment_service, patient, employee, patient_principal, subject):
        with pytest.raises(ValidationError):
            appointment_service.create(booking(patient, employee, subject=subject), patient_principal)

    def test_unknown_employee_is_rejected(self, appointment_service, patient, employee, patient_principal):
        data = AppointmentInput(subject="Checkup", date=in_days(2), patient_id=patient.id, employee_id=999)
        with pytest.raises(ValidationError, match="Employee 999 does not exist"):
            appointment_service.create(data, patient_principal)


class TestUpdate:
    def test_patient_update_resets_confirmation(
        self, appointment_service, patient, employee, patient_principal, employee_principal, notifications
    ):
        app = appointment_service.create(booking(patient, employee), employee_principal)
        assert app.is_confirmed is True

        updated = appointment_service.update(app.id, booking(patient, employee, days=6), patient_principal)

        assert updated.is_confirmed is False
        assert titles(notifications, employee.user_id)[0] == "Appointment Change Request"
        assert titles(notifications, patient.user_id) == []

    def test_employee_update_keeps_state(
        self, appointment_service, patient, employee, patient_principal, employee_principal, notifications
    ):
        app = appointment_service.create(booking(patient, employee), patient_principal)

        updated = appointment_service.update(app.id, booking(patient, employee, days=7), employee_principal)

        assert updated.is_confirmed is False
        assert titles(notifications, patient.user_id) == ["Appointment Updated"]
        assert titles(notifications, employee.user_id)[0] == "Appointment Updated"

    def test_employee_update_keeps_confirmed(
        self, appointment_service, patient, employee, employee_principal, notifications
    ):
        app = appointment_service.create(booking(patient, employee), employee_principal)
        assert app.is_confirmed is True

        updated = appointment_service.update(
            app.id, booking(patient, employee, days=8, subject="Insulin review"), employee_principal
        )

        assert updated.is_confirmed is True
        assert updated.subject == "Insulin review"
        assert titles(notifications, patient.user_id) == ["Appointment Updated"]
        assert titles(notifications, employee.user_id).count("Appointment Updated") == 1

    def test_ownership_is_read_from_stored_appointment(
        self, appointment_service, patient, employee, employee_principal, session
    ):
        from homecare.models import Patient

        stranger = Patient(full_name="Ola Moe", user_id="user-stranger")
        session.add(stranger)
        session.commit()
        stranger_principal = Principal(id="user-stranger", username="ola", roles=frozenset(["Patient"]))

        app = appointment_service.create(booking(patient, employee), employee_principal)
        # payload moves the appointment to the stranger, but the stored patient is Alice
        moved = appointment_service.update(app.id, booking(stranger, employee), stranger_principal)

        assert moved.is_confirmed is True
        assert moved.patient_id == stranger.id

    def test_update_missing_appointment(self, appointment_service, patient, employee, patient_principal):
        with pytest.raises(NotFoundError, match="Appointment not found"):
            appointment_service.update(12345, booking(patient, employee), patient_principal)

    def test_update_with_past_date_changes_nothing(
        self, appointment_service, patient, employee, patient_principal
    ):
        app = appointment_service.create(booking(patient, employee), patient_principal)
        past = AppointmentInput(
            subject="Moved",
            date=datetime.now() - timedelta(days=2),
            patient_id=patient.id,
            employee_id=employee.id,
        )
        with pytest.raises(ValidationError):
            appointment_service.update(app.id, past, patient_principal)

        assert appointment_service.get_by_id(app.id).subject == "Wound care"


class TestConfirm:
    def test_assigned_employee_confirms_once(
        self, appointment_service, patient, employee, patient_principal, employee_principal, notifications
    ):
        app = appointment_service.create(booking(patient, employee), patient_principal)

        first = appointment_service.confirm(app.id, employee_principal)
        second = appointment_service.confirm(app.id, employee_principal)

        assert first.already_confirmed is False
        assert first.message == "Appointment confirmed"
        assert second.already_confirmed is True
        assert second.message == "Appointment is already confirmed"
        assert titles(notifications, patient.user_id) == ["Appointment Confirmed"]

    def test_other_employee_is_forbidden(
        self, appointment_service, patient, employee, other_employee, patient_principal, notifications
    ):
        app = appointment_service.create(booking(patient, employee), patient_principal)
        intruder = Principal(id=other_employee.user_id, username="kari", roles=frozenset(["Employee"]))

        with pytest.raises(ForbiddenError):
            appointment_service.confirm(app.id, intruder)

        assert appointment_service.get_by_id(app.id).is_confirmed is False
        assert titles(notifications, patient.user_id) == []

    def test_authorization_is_checked_before_idempotency(
        self, appointment_service, patient, employee, other_employee, employee_principal
    ):
        app = appointment_service.create(booking(patient, employee), employee_principal)
        intruder = Principal(id=other_employee.user_id, username="kari", roles=frozenset(["Employee"]))

        with pytest.raises(ForbiddenError):
            appointment_service.confirm(app.id, intruder)

    def test_confirm_missing_appointment(self, appointment_service, employee_principal):
        with pytest.raises(NotFoundError):
            appointment_service.confirm(404, employee_principal)


class TestDelete:
    def test_delete_notifies_both_parties(
        self, appointment_service, patient, employee, patient_principal, notifications
    ):
        app = appointment_service.create(booking(patient, employee), patient_principal)

        appointment_service.delete(app.id)

        assert titles(notifications, patient.user_id) == ["Appointment Cancelled"]
        assert titles(notifications, employee.user_id)[0] == "Appointment Cancelled"
        with pytest.raises(NotFoundError):
            appointment_service.get_by_id(app.id)

    def test_delete_without_user_ids_sends_nothing(
        self, appointment_service, session, employee, employee_principal, notifications
    ):
        from homecare.models import Patient

        orphan = Patient(full_name="No Account", user_id="")
        session.add(orphan)
        session.commit()
        app = appointment_service.create(booking(orphan, employee), employee_principal)
        before = len(notifications.list())

        appointment_service.delete(app.id)

        assert len(notifications.list()) == before
        assert appointment_service.list() == []

    def test_delete_missing_appointment(self, appointment_service):
        with pytest.raises(NotFoundError):
            appointment_service.delete(777)


class FailingNotificationRepository(NotificationRepository):
    def add_all(self, notifications):
        raise SQLAlchemyError("notification store unavailable")


class TestBestEffortNotifications:
    @pytest.fixture
    def service(self, session) -> AppointmentService:
        return AppointmentService(
            AppointmentRepository(session),
            PatientRepository(session),
            EmployeeRepository(session),
            NotificationDispatcher(FailingNotificationRepository(session)),
        )

    def test_failures_never_reach_the_caller(self, service, patient, employee, patient_principal, employee_principal):
        app = service.create(booking(patient, employee), patient_principal)
        assert app.id is not None

        service.update(app.id, booking(patient, employee, days=4), patient_principal)
        assert service.confirm(app.id, employee_principal).message == "Appointment confirmed"

        service.delete(app.id)
        assert service.list() == []

    def test_try_notify_reports_failure(self, session):
        dispatcher = NotificationDispatcher(FailingNotificationRepository(session))
        from homecare.notifications import NotificationDraft

        assert dispatcher.try_notify([NotificationDraft(user_id="u1", title="t", message="m")]) is False
        assert dispatcher.try_notify([]) is False


class TestPersistenceFailures:
    @pytest.fixture
    def failing_service(self, session, notifications) -> AppointmentService:
        return AppointmentService(
            FailingWritesAppointmentRepository(session),
            PatientRepository(session),
            EmployeeRepository(session),
            NotificationDispatcher(notifications),
        )

    def test_failed_create_persists_nothing(
        self, failing_service, appointment_service, patient, employee, patient_principal, notifications
    ):
        with pytest.raises(PersistenceError) as exc:
            failing_service.create(booking(patient, employee), patient_principal)

        assert exc.value.status_code == 500
        assert exc.value.message == "Internal server error"
        assert appointment_service.list() == []
        assert notifications.list() == []

    def test_failed_update_keeps_stored_values(
        self, failing_service, appointment_service, patient, employee, patient_principal, employee_principal,
        notifications,
    ):
        app = appointment_service.create(booking(patient, employee), employee_principal)

        with pytest.raises(PersistenceError):
            failing_service.update(app.id, booking(patient, employee, subject="Moved"), patient_principal)

        stored = appointment_service.get_by_id(app.id)
        assert stored.subject == "Wound care"
        assert stored.is_confirmed is True
        assert "Appointment Change Request" not in titles(notifications, employee.user_id)

    def test_failed_delete_sends_no_cancellation(
        self, failing_service, appointment_service, patient, employee, patient_principal, notifications
    ):
        app = appointment_service.create(booking(patient, employee), patient_principal)

        with pytest.raises(OperationFailedError) as exc:
            failing_service.delete(app.id)

        assert exc.value.status_code == 400
        assert exc.value.message == "Appointment deletion failed"
        assert appointment_service.get_by_id(app.id).id == app.id
        assert "Appointment Cancelled" not in titles(notifications, patient.user_id)
        assert "Appointment Cancelled" not in titles(notifications, employee.user_id)
