from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import AUTH_DATABASE_URL, DATABASE_URL, SQL_ECHO


def _make_engine(url: str) -> Engine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=SQL_ECHO, future=True, connect_args=connect_args)


# Application data (patients, employees, appointments, medications, notifications)
engine = _make_engine(DATABASE_URL)

# Identity data (users, roles, credentials)
auth_engine = _make_engine(AUTH_DATABASE_URL)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
    expire_on_commit=False,
)

AuthSessionLocal = sessionmaker(
    bind=auth_engine,
    autoflush=False,
    autocommit=False,
    future=True,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base ORM for the application store."""
    pass


class AuthBase(DeclarativeBase):
    """Base ORM for the identity store."""
    pass


def init_db() -> None:
    """Create the tables of both stores if they do not exist."""
    # Import so that every model is registered on its metadata
    from . import auth_models, models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    AuthBase.metadata.create_all(bind=auth_engine)


def drop_db() -> None:
    Base.metadata.drop_all(bind=engine)
    AuthBase.metadata.drop_all(bind=auth_engine)


@contextmanager
def _scoped(factory: sessionmaker) -> Iterator[Session]:
    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def db_session():
    """
    Context manager over an application-store session:
    - commit if everything went fine
    - rollback on exceptions
    - always close
    """
    return _scoped(SessionLocal)


def auth_session():
    """Same as db_session(), on the identity store."""
    return _scoped(AuthSessionLocal)


# FastAPI dependencies: one session per request
def get_db() -> Iterator[Session]:
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


def get_auth_db() -> Iterator[Session]:
    s = AuthSessionLocal()
    try:
        yield s
    finally:
        s.close()
