"""
Notifications.

- NotificationDispatcher: side effects of the appointment and medication lifecycles.
  Dispatch is best effort: a failure is logged and never reaches the caller.
- NotificationService: read/query operations for the recipient.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from .auth_security import Principal
from .errors import ForbiddenError, NotFoundError, OperationFailedError
from .models import Appointment, Medication, Notification, NotificationType
from .repositories import NotificationRepository

logger = logging.getLogger(__name__)

PROVIDER_FALLBACK = "healthcare provider"
PATIENT_FALLBACK = "patient"

MEDICATION_TITLES = {
    "created": "New Medication Added",
    "updated": "Medication Updated",
    "deleted": "Medication Removed",
}


def _day(d: datetime) -> str:
    return d.strftime("%b %d, %Y")


@dataclass(frozen=True)
class NotificationDraft:
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.APPOINTMENT
    related_id: int | None = None

    def build(self) -> Notification:
        return Notification(
            user_id=self.user_id,
            title=self.title,
            message=self.message,
            type=self.type,
            related_id=self.related_id,
            is_read=False,
            created_at=datetime.now(),
        )


class NotificationDispatcher:
    def __init__(self, repo: NotificationRepository) -> None:
        self.repo = repo

    def try_notify(self, drafts: list[NotificationDraft]) -> bool:
        """Persist the drafts in one go. Returns False on failure, never raises."""
        if not drafts:
            return False
        try:
            self.repo.add_all([d.build() for d in drafts])
        except Exception:
            self.repo.s.rollback()
            logger.exception("Failed to create notifications %s", [d.title for d in drafts])
            return False
        return True

    # appointments

    def _recipients(self, appointment: Appointment, event: str) -> tuple[str, str] | None:
        patient_uid = appointment.patient.user_id if appointment.patient else None
        employee_uid = appointment.employee.user_id if appointment.employee else None
        if not patient_uid or not employee_uid:
            logger.warning("Missing user ids for appointment %s (%s), no notification sent", appointment.id, event)
            return None
        return patient_uid, employee_uid

    @staticmethod
    def _names(appointment: Appointment) -> tuple[str, str]:
        patient = appointment.patient.full_name if appointment.patient and appointment.patient.full_name else None
        employee = appointment.employee.full_name if appointment.employee and appointment.employee.full_name else None
        return patient or PATIENT_FALLBACK, employee or PROVIDER_FALLBACK

    def notify_created(self, appointment: Appointment) -> bool:
        # Employee-created appointments are already confirmed but still get the request notice.
        ids = self._recipients(appointment, "created")
        if ids is None:
            return False
        _, employee_uid = ids
        patient_name, _ = self._names(appointment)
        ok = self.try_notify([
            NotificationDraft(
                user_id=employee_uid,
                title="New Appointment Request",
                message=(
                    f"{patient_name} has requested the appointment '{appointment.subject}' "
                    f"on {_day(appointment.date)}. Please review and confirm it."
                ),
                related_id=appointment.id,
            )
        ])
        if ok:
            logger.info("Created notifications for appointment %s", appointment.id)
        return ok

    def notify_updated(self, appointment: Appointment, was_patient_update: bool) -> bool:
        ids = self._recipients(appointment, "updated")
        if ids is None:
            return False
        patient_uid, employee_uid = ids
        patient_name, employee_name = self._names(appointment)
        day = _day(appointment.date)

        if was_patient_update:
            drafts = [
                NotificationDraft(
                    user_id=employee_uid,
                    title="Appointment Change Request",
                    message=(
                        f"{patient_name} has changed the appointment '{appointment.subject}'. "
                        f"New date: {day}. Please review and confirm the changes."
                    ),
                    related_id=appointment.id,
                )
            ]
        else:
            drafts = [
                NotificationDraft(
                    user_id=patient_uid,
                    title="Appointment Updated",
                    message=(
                        f"Your appointment '{appointment.subject}' has been updated. "
                        f"New date: {day} with {employee_name}."
                    ),
                    related_id=appointment.id,
                ),
                NotificationDraft(
                    user_id=employee_uid,
                    title="Appointment Updated",
                    message=(
                        f"Appointment '{appointment.subject}' with {patient_name} has been updated. "
                        f"New date: {day}."
                    ),
                    related_id=appointment.id,
                ),
            ]
        ok = self.try_notify(drafts)
        if ok:
            logger.info("Created update notifications for appointment %s", appointment.id)
        return ok

    def notify_confirmed(self, appointment: Appointment) -> bool:
        ids = self._recipients(appointment, "confirmed")
        if ids is None:
            return False
        patient_uid, _ = ids
        _, employee_name = self._names(appointment)
        ok = self.try_notify([
            NotificationDraft(
                user_id=patient_uid,
                title="Appointment Confirmed",
                message=(
                    f"Your appointment '{appointment.subject}' on {_day(appointment.date)} "
                    f"with {employee_name} has been confirmed."
                ),
                related_id=appointment.id,
            )
        ])
        if ok:
            logger.info("Created confirmation notification for appointment %s", appointment.id)
        return ok

    def deletion_notices(self, appointment: Appointment) -> list[NotificationDraft]:
        """Cancellation notices, built while the appointment and its relations still exist."""
        ids = self._recipients(appointment, "deleted")
        if ids is None:
            return []
        patient_uid, employee_uid = ids
        patient_name, _ = self._names(appointment)
        day = _day(appointment.date)
        return [
            NotificationDraft(
                user_id=patient_uid,
                title="Appointment Cancelled",
                message=f"Your appointment '{appointment.subject}' scheduled for {day} has been cancelled.",
                related_id=appointment.id,
            ),
            NotificationDraft(
                user_id=employee_uid,
                title="Appointment Cancelled",
                message=(
                    f"Appointment '{appointment.subject}' with {patient_name} "
                    f"scheduled for {day} has been cancelled."
                ),
                related_id=appointment.id,
            ),
        ]

    def send(self, drafts: list[NotificationDraft], event: str) -> bool:
        """try_notify() for drafts built earlier."""
        ok = self.try_notify(drafts)
        if ok:
            logger.info("Created notifications for %s", event)
        return ok

    # medications

    def medication_notices(self, medication: Medication, action: str) -> list[NotificationDraft]:
        patient_uid = medication.patient.user_id if medication.patient else None
        if not patient_uid:
            logger.warning("Missing patient user id for medication %s, no notification sent", medication.name)
            return []

        if action == "created":
            message = (
                f"A new medication '{medication.name}' has been added to your treatment plan. "
                f"Dosage: {medication.dosage}."
            )
        elif action == "updated":
            message = f"Your medication '{medication.name}' has been updated. New dosage: {medication.dosage}."
        elif action == "deleted":
            message = f"The medication '{medication.name}' has been removed from your treatment plan."
        else:
            message = f"Your medication '{medication.name}' has been changed."

        return [
            NotificationDraft(
                user_id=patient_uid,
                title=MEDICATION_TITLES.get(action, "Medication Changed"),
                message=message,
                type=NotificationType.MEDICATION,
                related_id=None,  # medications are keyed by name
            )
        ]

    def notify_medication(self, medication: Medication, action: str) -> bool:
        return self.send(self.medication_notices(medication, action), f"{action} medication {medication.name}")


class NotificationService:
    def __init__(self, repo: NotificationRepository) -> None:
        self.repo = repo

    def list_for_user(self, user_id: str) -> list[Notification]:
        return self.repo.list_for_user(user_id)

    def list_unread_for_user(self, user_id: str) -> list[Notification]:
        return self.repo.list_unread_for_user(user_id)

    def count_unread(self, user_id: str) -> int:
        return self.repo.count_unread(user_id)

    def _owned(self, notification_id: int, principal: Principal, action: str) -> Notification:
        n = self.repo.get(notification_id)
        if n is None:
            raise NotFoundError("Notification not found")
        if n.user_id != principal.id:
            logger.warning("User %s tried to %s notification %s of another user", principal.id, action, notification_id)
            raise ForbiddenError(f"You can only {action} your own notifications")
        return n

    def mark_read(self, notification_id: int, principal: Principal) -> Notification:
        n = self._owned(notification_id, principal, "mark as read")
        n.is_read = True
        self.repo.save(n)
        return n

    def mark_all_read(self, user_id: str) -> int:
        return self.repo.mark_all_read(user_id)

    def delete(self, notification_id: int, principal: Principal) -> None:
        n = self._owned(notification_id, principal, "delete")
        self.repo.delete(n)

    def create(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.GENERAL,
        related_id: int | None = None,
    ) -> Notification:
        if not user_id or not title or not message:
            raise OperationFailedError("Failed to create notification")
        n = NotificationDraft(user_id=user_id, title=title, message=message, type=type, related_id=related_id).build()
        return self.repo.add(n)
