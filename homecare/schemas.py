"""Request and response shapes of the REST API."""
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from .models import Appointment, Medication, Notification, NotificationType


# Auth

class RegisterIn(BaseModel):
    username: str
    email: str
    password: str
    role: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MessageOut(BaseModel):
    message: str


class MeOut(BaseModel):
    id: str
    username: str
    email: str
    role: str
    is_active: bool
    patient_id: int | None = None
    employee_id: int | None = None


# Patients / employees

class PatientProfileIn(BaseModel):
    full_name: str
    address: str = ""
    date_of_birth: date | None = None
    phone: str = ""
    health_info: str = ""


class EmployeeProfileIn(BaseModel):
    full_name: str
    address: str = ""
    department: str = ""


class PatientIn(BaseModel):
    id: int | None = None
    full_name: str
    address: str = ""
    date_of_birth: date | None = None
    phone: str = ""
    health_info: str = ""


class PatientCreateIn(PatientIn):
    user_id: str


class PatientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    address: str
    date_of_birth: date | None
    phone: str
    health_info: str
    user_id: str


class EmployeeIn(BaseModel):
    id: int | None = None
    full_name: str
    address: str = ""
    department: str = ""


class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    address: str
    department: str
    user_id: str


# Appointments

class AppointmentIn(BaseModel):
    subject: str
    description: str = ""
    date: datetime
    patient_id: int
    employee_id: int


class AppointmentOut(BaseModel):
    id: int
    subject: str
    description: str
    date: datetime
    patient_id: int
    employee_id: int
    is_confirmed: bool
    patient_name: str
    employee_name: str

    @classmethod
    def from_entity(cls, a: Appointment) -> "AppointmentOut":
        return cls(
            id=a.id,
            subject=a.subject,
            description=a.description,
            date=a.date,
            patient_id=a.patient_id,
            employee_id=a.employee_id,
            is_confirmed=a.is_confirmed,
            patient_name=a.patient_name,
            employee_name=a.employee_name,
        )


class ConfirmOut(BaseModel):
    message: str
    already_confirmed: bool
    appointment: AppointmentOut


# Medications

class MedicationIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    patient_id: int
    indication: str = ""
    dosage: str = ""
    start_date: date
    end_date: date | None = None


class MedicationUpdateIn(BaseModel):
    patient_id: int
    indication: str = ""
    dosage: str = ""
    start_date: date
    end_date: date | None = None


class MedicationOut(BaseModel):
    name: str
    patient_id: int
    patient_name: str
    indication: str
    dosage: str
    start_date: date
    end_date: date | None
    is_active: bool

    @classmethod
    def from_entity(cls, m: Medication) -> "MedicationOut":
        return cls(
            name=m.name,
            patient_id=m.patient_id,
            patient_name=m.patient_name,
            indication=m.indication,
            dosage=m.dosage,
            start_date=m.start_date,
            end_date=m.end_date,
            is_active=m.is_active,
        )


# Notifications

class NotificationIn(BaseModel):
    user_id: str
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    type: NotificationType = NotificationType.GENERAL
    related_id: int | None = None


class NotificationOut(BaseModel):
    id: int
    user_id: str
    title: str
    message: str
    type: str
    related_id: int | None
    is_read: bool
    created_at: datetime

    @classmethod
    def from_entity(cls, n: Notification) -> "NotificationOut":
        return cls(
            id=n.id,
            user_id=n.user_id,
            title=n.title,
            message=n.message,
            type=n.type.value,
            related_id=n.related_id,
            is_read=n.is_read,
            created_at=n.created_at,
        )
