from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from homecare.db import AuthBase


def new_uuid() -> str:
    return str(uuid.uuid4())


class Role(str, enum.Enum):
    PATIENT = "Patient"
    EMPLOYEE = "Employee"
    ADMIN = "Admin"


class User(AuthBase):
    """
    Application user for authentication.
    - unique username and email
    - password_hash with bcrypt (passlib)
    - one role, carried in the access token
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.PATIENT.value)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
