"""CRUD facade per entity over a request-scoped session."""
from __future__ import annotations

import logging
from typing import Generic, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from .errors import PersistenceError
from .models import Appointment, Employee, Medication, Notification, Patient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Repository(Generic[T]):
    model: type

    def __init__(self, s: Session) -> None:
        self.s = s

    def get(self, key) -> T | None:
        return self.s.get(self.model, key)

    def list(self) -> list[T]:
        return list(self.s.scalars(select(self.model)))

    def add(self, entity: T) -> T:
        self.s.add(entity)
        self._commit(f"add {self.model.__name__}")
        self.s.refresh(entity)
        return entity

    def save(self, entity: T) -> T:
        self._commit(f"save {self.model.__name__}")
        return entity

    def delete(self, entity: T) -> None:
        self.s.delete(entity)
        self._commit(f"delete {self.model.__name__}")

    def _commit(self, what: str) -> None:
        try:
            self.s.commit()
        except SQLAlchemyError:
            self.s.rollback()
            logger.exception("%s failed", what)
            raise PersistenceError()


class PatientRepository(Repository[Patient]):
    model = Patient

    def list(self) -> list[Patient]:
        return list(self.s.scalars(select(Patient).order_by(Patient.full_name, Patient.id)))

    def get_by_user_id(self, user_id: str) -> Patient | None:
        return self.s.execute(select(Patient).where(Patient.user_id == user_id)).scalar_one_or_none()

    def get_by_phone(self, phone: str) -> Patient | None:
        return self.s.execute(select(Patient).where(Patient.phone == phone)).scalars().first()


class EmployeeRepository(Repository[Employee]):
    model = Employee

    def list(self) -> list[Employee]:
        return list(self.s.scalars(select(Employee).order_by(Employee.full_name, Employee.id)))

    def get_by_user_id(self, user_id: str) -> Employee | None:
        return self.s.execute(select(Employee).where(Employee.user_id == user_id)).scalar_one_or_none()


class AppointmentRepository(Repository[Appointment]):
    model = Appointment

    def _query(self):
        return select(Appointment).options(
            selectinload(Appointment.patient),
            selectinload(Appointment.employee),
        )

    def get(self, key: int) -> Appointment | None:
        return self.s.scalars(self._query().where(Appointment.id == key)).first()

    def list(self) -> list[Appointment]:
        return list(self.s.scalars(self._query().order_by(Appointment.date.asc(), Appointment.id.asc())))

    def list_by_patient(self, patient_id: int) -> list[Appointment]:
        q = self._query().where(Appointment.patient_id == patient_id).order_by(Appointment.date.asc(), Appointment.id.asc())
        return list(self.s.scalars(q))

    def reload(self, appointment: Appointment) -> Appointment:
        """Refresh relations after foreign keys changed."""
        self.s.refresh(appointment, attribute_names=["patient", "employee"])
        return appointment


class MedicationRepository(Repository[Medication]):
    model = Medication

    def list(self) -> list[Medication]:
        q = select(Medication).options(selectinload(Medication.patient)).order_by(Medication.start_date.desc())
        return list(self.s.scalars(q))

    def list_by_patient(self, patient_id: int) -> list[Medication]:
        q = (
            select(Medication)
            .options(selectinload(Medication.patient))
            .where(Medication.patient_id == patient_id)
            .order_by(Medication.start_date.desc())
        )
        return list(self.s.scalars(q))


class NotificationRepository(Repository[Notification]):
    model = Notification

    def _for_user(self, user_id: str):
        return (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )

    def list(self) -> list[Notification]:
        q = select(Notification).order_by(Notification.created_at.desc(), Notification.id.desc())
        return list(self.s.scalars(q))

    def list_for_user(self, user_id: str) -> list[Notification]:
        return list(self.s.scalars(self._for_user(user_id)))

    def list_unread_for_user(self, user_id: str) -> list[Notification]:
        return list(self.s.scalars(self._for_user(user_id).where(Notification.is_read.is_(False))))

    def count_unread(self, user_id: str) -> int:
        q = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
        return self.s.execute(q).scalar_one()

    def add_all(self, notifications: list[Notification]) -> None:
        """Stage and commit in one transaction. Raises the raw error; callers decide."""
        self.s.add_all(notifications)
        self.s.commit()

    def mark_all_read(self, user_id: str) -> int:
        res = self.s.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        self._commit("mark all notifications read")
        return res.rowcount or 0

    def delete_for_user(self, user_id: str) -> int:
        """Staged in the current transaction; the caller commits."""
        rows = self.list_for_user(user_id)
        for n in rows:
            self.s.delete(n)
        return len(rows)
