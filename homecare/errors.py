"""Domain errors. The API layer turns them into HTTP responses with ``status_code``."""
from __future__ import annotations


class DomainError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    status_code = 400


class OperationFailedError(DomainError):
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404


class ForbiddenError(DomainError):
    status_code = 403


class PersistenceError(DomainError):
    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
