"""Patient and employee profiles."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date

from .errors import NotFoundError, ValidationError
from .models import Employee, Patient
from .repositories import EmployeeRepository, PatientRepository

logger = logging.getLogger(__name__)

FULL_NAME_RE = re.compile(r"^[A-Za-zÆØÅæøå '\-]{1,50}$")
PHONE_RE = re.compile(r"^(\+47)?\s?[0-9]{8}$")


@dataclass(frozen=True)
class PatientInput:
    full_name: str
    address: str = ""
    date_of_birth: date | None = None
    phone: str = ""
    health_info: str = ""


@dataclass(frozen=True)
class EmployeeInput:
    full_name: str
    address: str = ""
    department: str = ""


def validate_full_name(full_name: str) -> str:
    full_name = (full_name or "").strip()
    if not FULL_NAME_RE.match(full_name):
        raise ValidationError("FullName must be 1-50 characters and contain only letters.")
    return full_name


def validate_phone(phone: str) -> str:
    phone = (phone or "").strip()
    if phone and not PHONE_RE.match(phone):
        raise ValidationError("Phone number must be 8 digits, optionally with +47 prefix.")
    return phone


class PatientService:
    def __init__(self, patients: PatientRepository) -> None:
        self.patients = patients

    def list(self) -> list[Patient]:
        return self.patients.list()

    def get(self, patient_id: int) -> Patient:
        p = self.patients.get(patient_id)
        if p is None:
            raise NotFoundError("Patient not found")
        return p

    def get_by_user_id(self, user_id: str) -> Patient:
        p = self.patients.get_by_user_id(user_id)
        if p is None:
            logger.warning("Patient with user id %s not found", user_id)
            raise NotFoundError(f"Patient with UserId {user_id} not found")
        return p

    def _check_phone(self, phone: str, patient_id: int | None = None) -> str:
        phone = validate_phone(phone)
        if phone:
            other = self.patients.get_by_phone(phone)
            if other is not None and other.id != patient_id:
                raise ValidationError("This phone number is already in use")
        return phone

    def create(self, user_id: str, data: PatientInput) -> Patient:
        if self.patients.get_by_user_id(user_id) is not None:
            raise ValidationError("Patient profile already exists")
        p = Patient(
            full_name=validate_full_name(data.full_name),
            address=data.address,
            date_of_birth=data.date_of_birth,
            phone=self._check_phone(data.phone),
            health_info=data.health_info,
            user_id=user_id,
        )
        self.patients.add(p)
        logger.info("Created patient %s for user %s", p.id, user_id)
        return p

    def update(self, patient_id: int, data: PatientInput) -> Patient:
        p = self.get(patient_id)
        p.full_name = validate_full_name(data.full_name)
        p.address = data.address
        p.date_of_birth = data.date_of_birth
        p.phone = self._check_phone(data.phone, patient_id)
        p.health_info = data.health_info
        self.patients.save(p)
        return p

    def delete(self, patient_id: int) -> None:
        p = self.get(patient_id)
        self.patients.delete(p)
        logger.info("Deleted patient %s", patient_id)


class EmployeeService:
    def __init__(self, employees: EmployeeRepository) -> None:
        self.employees = employees

    def list(self) -> list[Employee]:
        return self.employees.list()

    def get(self, employee_id: int) -> Employee:
        e = self.employees.get(employee_id)
        if e is None:
            raise NotFoundError("Employee not found")
        return e

    def get_by_user_id(self, user_id: str) -> Employee:
        e = self.employees.get_by_user_id(user_id)
        if e is None:
            logger.warning("Employee with user id %s not found", user_id)
            raise NotFoundError(f"Employee with UserId {user_id} not found")
        return e

    def create(self, user_id: str, data: EmployeeInput) -> Employee:
        if self.employees.get_by_user_id(user_id) is not None:
            raise ValidationError("Employee profile already exists")
        e = Employee(
            full_name=validate_full_name(data.full_name),
            address=data.address,
            department=data.department,
            user_id=user_id,
        )
        self.employees.add(e)
        logger.info("Created employee %s for user %s", e.id, user_id)
        return e

    def update(self, employee_id: int, data: EmployeeInput) -> Employee:
        e = self.get(employee_id)
        e.full_name = validate_full_name(data.full_name)
        e.address = data.address
        e.department = data.department
        self.employees.save(e)
        return e

    def delete(self, employee_id: int) -> None:
        e = self.get(employee_id)
        self.employees.delete(e)
        logger.info("Deleted employee %s", employee_id)
