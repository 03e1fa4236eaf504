from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..policy.model import DenyReason


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when no actor can be resolved (bad credentials, missing session)."""


class AuthorizationError(DomainError):
    """Raised by services when the policy denies an action.

    Carries the machine-readable deny reason so controllers can answer
    precisely without re-deriving it.
    """

    def __init__(self, reason: "DenyReason", message: str | None = None):
        self.reason = reason
        super().__init__(message or reason.message)


class NotFoundError(DomainError):
    """Raised when a referenced resource does not exist."""


class ConflictError(DomainError):
    """Raised when a record changed between authorization and mutation."""
