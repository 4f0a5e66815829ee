from __future__ import annotations

from datetime import date

import pytest

from homecare.errors import OperationFailedError, PersistenceError
from homecare.medications import MedicationInput, MedicationService
from homecare.models import Medication, NotificationType
from homecare.notifications import NotificationDispatcher, NotificationService
from homecare.repositories import MedicationRepository, PatientRepository


class TestMedicationNotices:
    @pytest.fixture
    def medication(self, session, patient) -> Medication:
        med = Medication(name="Insulin", patient_id=patient.id, dosage="10 IU", start_date=date.today())
        session.add(med)
        session.commit()
        return med

    @pytest.mark.parametrize(
        "action,title",
        [
            ("created", "New Medication Added"),
            ("updated", "Medication Updated"),
            ("deleted", "Medication Removed"),
            ("paused", "Medication Changed"),
        ],
    )
    def test_titles(self, notifications, medication, patient, action, title):
        assert NotificationDispatcher(notifications).notify_medication(medication, action) is True

        (n,) = notifications.list_for_user(patient.user_id)
        assert n.title == title
        assert n.type == NotificationType.MEDICATION
        assert n.related_id is None

    def test_patient_without_account_is_skipped(self, session, notifications, patient, medication):
        patient.user_id = ""
        session.commit()

        assert NotificationDispatcher(notifications).notify_medication(medication, "created") is False
        assert notifications.list() == []


class TestNotificationService:
    def test_create_requires_fields(self, notifications):
        with pytest.raises(OperationFailedError):
            NotificationService(notifications).create(user_id="u1", title="", message="m")

    def test_create_defaults_to_general(self, notifications):
        n = NotificationService(notifications).create(user_id="u1", title="Hello", message="World")
        assert n.type == NotificationType.GENERAL
        assert n.is_read is False
        assert NotificationService(notifications).count_unread("u1") == 1


class FailingWritesMedicationRepository(MedicationRepository):
    def _commit(self, what: str) -> None:
        self.s.rollback()
        raise PersistenceError()


class TestMedicationDelete:
    def test_removal_notice_follows_the_delete(self, session, notifications, patient):
        dispatcher = NotificationDispatcher(notifications)
        service = MedicationService(MedicationRepository(session), PatientRepository(session), dispatcher)
        service.create("Warfarin", MedicationInput(patient_id=patient.id, start_date=date.today(), dosage="5 mg"))

        service.delete("Warfarin")

        assert [n.title for n in notifications.list_for_user(patient.user_id)] == [
            "Medication Removed",
            "New Medication Added",
        ]

    def test_failed_delete_sends_no_removal_notice(self, session, notifications, patient):
        dispatcher = NotificationDispatcher(notifications)
        MedicationService(MedicationRepository(session), PatientRepository(session), dispatcher).create(
            "Warfarin", MedicationInput(patient_id=patient.id, start_date=date.today(), dosage="5 mg")
        )
        failing = MedicationService(FailingWritesMedicationRepository(session), PatientRepository(session), dispatcher)

        with pytest.raises(PersistenceError):
            failing.delete("Warfarin")

        assert MedicationRepository(session).get("Warfarin") is not None
        assert "Medication Removed" not in [n.title for n in notifications.list_for_user(patient.user_id)]
