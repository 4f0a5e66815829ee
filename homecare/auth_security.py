from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from .auth_models import Role
from .config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALG, JWT_SECRET

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class Principal:
    """Authenticated user, resolved once per request from the bearer token."""
    id: str
    username: str
    roles: frozenset[str] = frozenset()

    def has_role(self, *roles: Role | str) -> bool:
        wanted = {r.value if isinstance(r, Role) else r for r in roles}
        return bool(self.roles & wanted)

    @property
    def is_employee(self) -> bool:
        return self.has_role(Role.EMPLOYEE)

    @property
    def is_patient(self) -> bool:
        return self.has_role(Role.PATIENT)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(subject: str, extra: dict[str, Any] | None = None) -> str:
    """
    subject: the user id.
    Uses timezone-aware datetimes to avoid offset bugs on timestamps.
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    payload: dict[str, Any] = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    if extra:
        payload.update(extra)

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])


def principal_from_token(token: str) -> Principal | None:
    try:
        payload = decode_token(token)
    except JWTError:
        return None

    sub = payload.get("sub")
    if not sub:
        return None

    role = payload.get("role")
    roles = frozenset([role]) if isinstance(role, str) else frozenset(role or [])
    return Principal(id=str(sub), username=str(payload.get("username") or ""), roles=roles)
