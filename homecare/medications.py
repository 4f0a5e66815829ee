from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from .errors import NotFoundError, ValidationError
from .models import Medication
from .notifications import NotificationDispatcher
from .repositories import MedicationRepository, PatientRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MedicationInput:
    patient_id: int
    start_date: date
    dosage: str = ""
    indication: str = ""
    end_date: date | None = None


class MedicationService:
    """Medication CRUD. Every mutation notifies the patient (best effort)."""

    def __init__(self, medications: MedicationRepository, patients: PatientRepository, dispatcher: NotificationDispatcher) -> None:
        self.medications = medications
        self.patients = patients
        self.dispatcher = dispatcher

    def list_all(self) -> list[Medication]:
        meds = self.medications.list()
        logger.info("Retrieved %d medications", len(meds))
        return meds

    def list_by_patient(self, patient_id: int) -> list[Medication]:
        """Active medications only."""
        return [m for m in self.medications.list_by_patient(patient_id) if m.is_active]

    def get_by_name(self, name: str) -> Medication:
        med = self.medications.get(name)
        if med is None:
            logger.warning("Medication not found: %s", name)
            raise NotFoundError("Medication not found")
        return med

    def _check(self, data: MedicationInput) -> None:
        if self.patients.get(data.patient_id) is None:
            raise ValidationError(f"Patient {data.patient_id} does not exist")
        if data.end_date is not None and data.end_date < data.start_date:
            raise ValidationError("End date cannot be before start date")

    def create(self, name: str, data: MedicationInput) -> Medication:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Medication name is required")
        if self.medications.get(name) is not None:
            raise ValidationError(f"Medication '{name}' already exists")
        self._check(data)

        med = Medication(
            name=name,
            patient_id=data.patient_id,
            dosage=data.dosage,
            indication=data.indication,
            start_date=data.start_date,
            end_date=data.end_date,
        )
        self.medications.add(med)
        self.dispatcher.notify_medication(med, "created")
        logger.info("Created medication %s for patient %s", name, data.patient_id)
        return med

    def update(self, name: str, data: MedicationInput) -> Medication:
        med = self.get_by_name(name)
        self._check(data)

        med.dosage = data.dosage
        med.indication = data.indication
        med.start_date = data.start_date
        med.end_date = data.end_date
        med.patient_id = data.patient_id
        self.medications.save(med)
        self.medications.s.refresh(med, attribute_names=["patient"])

        self.dispatcher.notify_medication(med, "updated")
        logger.info("Updated medication %s for patient %s", name, med.patient_id)
        return med

    def delete(self, name: str) -> None:
        med = self.get_by_name(name)
        notices = self.dispatcher.medication_notices(med, "deleted")
        self.medications.delete(med)
        logger.info("Deleted medication %s", name)
        self.dispatcher.send(notices, f"deleted medication {name}")
