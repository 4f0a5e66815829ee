from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class NotificationType(enum.Enum):
    APPOINTMENT = "appointment"
    MEDICATION = "medication"
    GENERAL = "general"


class Patient(Base):
    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    phone: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    health_info: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # identity store user id (different database, no FK)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True, index=True)

    appointments: Mapped[list["Appointment"]] = relationship(back_populates="patient", cascade="all, delete-orphan")
    medications: Mapped[list["Medication"]] = relationship(back_populates="patient", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"Patient({self.id}, {self.full_name})"


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    department: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True, index=True)

    appointments: Mapped[list["Appointment"]] = relationship(back_populates="employee", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"Employee({self.id}, {self.full_name}, {self.department})"


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # only the calendar day is meaningful
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id"), nullable=False)

    # False = pending request, True = confirmed booking
    is_confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    patient: Mapped["Patient"] = relationship(back_populates="appointments")
    employee: Mapped["Employee"] = relationship(back_populates="appointments")

    @property
    def patient_name(self) -> str:
        return self.patient.full_name if self.patient else "Unknown Patient"

    @property
    def employee_name(self) -> str:
        return self.employee.full_name if self.employee else "Unknown Employee"

    def __repr__(self) -> str:
        state = "confirmed" if self.is_confirmed else "pending"
        return f"Appointment({self.id}, {self.subject!r}, {state})"


class Medication(Base):
    __tablename__ = "medications"

    name: Mapped[str] = mapped_column(String(100), primary_key=True)
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False)
    indication: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    dosage: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)  # NULL = still active

    patient: Mapped["Patient"] = relationship(back_populates="medications")

    @property
    def is_active(self) -> bool:
        return self.end_date is None or self.end_date >= date.today()

    @property
    def patient_name(self) -> str:
        return self.patient.full_name if self.patient else ""


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType), default=NotificationType.GENERAL, nullable=False
    )

    # id of the related entity (appointment); NULL for medications, keyed by name
    related_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
