"""Domain errors raised by services and translated into flashes by routers."""

from __future__ import annotations


class FinanceError(Exception):
    """Base class for expected, user-facing failures."""


class UniqueConflictError(FinanceError):
    """The store refused a duplicate value (e.g. login or email)."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"{field} is already in use")


class ReferentialConflictError(FinanceError):
    """A record cannot be removed while other records still point at it."""


class InvalidCredentialsError(FinanceError):
    def __init__(self, message: str = "Invalid email or password."):
        super().__init__(message)


class NotFoundError(FinanceError):
    """Record missing or owned by someone else."""


class IncompleteAccountError(FinanceError):
    """A credential exists but registration never stored its personal data."""

    def __init__(
        self,
        message: str = "This account was not fully created. Please contact support.",
    ):
        super().__init__(message)


class FieldError(FinanceError, ValueError):
    """Input rejected by a service, tagged with the form field it belongs to."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


__all__ = [
    "FinanceError",
    "UniqueConflictError",
    "ReferentialConflictError",
    "InvalidCredentialsError",
    "NotFoundError",
    "IncompleteAccountError",
    "FieldError",
]
